import logging

from config import Config
from utils.logging.logging_manager import LogLevel, LogManager

# Client libraries log every request at DEBUG/INFO; keep them at WARNING so scrape logs stay readable
NOISY_LIBRARY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")

# LOG_LEVEL is validated in Config, so the enum lookup cannot fail
log_manager = LogManager(
    log_dir=Config.LOG_DIR,
    log_file=Config.LOG_FILE,
    log_retention_hours=Config.LOG_RETENTION_HOURS,
    default_level=LogLevel[Config.LOG_LEVEL],
    use_filter=Config.USE_FILTER == "true",
    log_output=Config.LOG_OUTPUT,
)

for library_logger in NOISY_LIBRARY_LOGGERS:
    logging.getLogger(library_logger).setLevel(logging.WARNING)
