import logging
import os
from logging.handlers import RotatingFileHandler
from maps_assistant.core.config import settings

class LoggerConfig:
    """
    Logger configuration for the maps assistant.
    Writes to a rotating file and to the console with the same format.
    """
    def __init__(
        self, env=20, logger_name="MapsAssistant", log_directory="logs", log_file="app.log"
    ):
        self.logger_name = logger_name
        self.log_directory = os.path.abspath(log_directory)
        self.log_file_path = os.path.join(self.log_directory, log_file)
        self.env = env
        self.log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        self.logger = logging.getLogger(self.logger_name)
        self.setup_logger()

    def setup_logger(self):
        self.logger.setLevel(self.env)
        # Module reloads must not stack handlers
        if self.logger.handlers:
            return

        os.makedirs(self.log_directory, exist_ok=True)
        formatter = logging.Formatter(self.log_format)
        for handler in (
            RotatingFileHandler(self.log_file_path, backupCount=5, maxBytes=1024 * 1024 * 10, encoding="utf-8"),
            logging.StreamHandler(),
        ):
            handler.setLevel(self.env)
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log(self, level: int, message: str, extra: dict = None):
        """Log a message, appending structured context when given."""
        if extra:
            message = f"{message} | {extra}"
        self.logger.log(level, message)

logs = LoggerConfig(
    env=settings.LOGGER,
    logger_name="MAPS-AI",
    log_directory=settings.LOG_DIRECTORY,
    log_file="maps_assistant.log"
)
