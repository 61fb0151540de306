from farmtofork.app import create_app
from farmtofork.core.config import config

if __name__ == "__main__":
    application = create_app()
    application.run(debug=config.app.debug, host=config.app.host, port=config.app.port)
