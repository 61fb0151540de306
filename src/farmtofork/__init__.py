"""Farm To Fork: marketplace API connecting local farms with customers."""

from farmtofork.app import create_app

__all__ = ["create_app"]
__version__ = "1.0.0"
