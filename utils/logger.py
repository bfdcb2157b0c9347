import logging
import logging.config

def setup_logging(config) -> None:
    """Настроить логирование из BotConfig.get_logging_config()"""
    if config.log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config.get_logging_config())
