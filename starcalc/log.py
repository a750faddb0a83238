import os
import sys
import logging
import logging.handlers


def set_logger(config):
    """
    installs the stdout and rotating file handlers on the starcalc
    logger as configured in config['log']
    """
    logger = logging.getLogger("starcalc")
    level = getattr(logging, str(config['log']['level']).upper(),
        logging.INFO)
    logger.setLevel(level)

    log_format = logging.Formatter(
        '%(asctime)s %(levelname)s %(module)s %(funcName)s %(lineno)d: '
        '%(message)s',
        datefmt="[%d/%m/%Y %H:%M]")

    if config['log']['stdout']:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(log_format)
        stdout_handler.setLevel(level)
        logger.addHandler(stdout_handler)

    if config['log']['file']:
        log_dir = config['log']['dir'] or "."
        os.makedirs(log_dir, exist_ok=True)
        fhandler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, config['log']['file']),
            encoding='utf-8', mode='a', maxBytes=10**7, backupCount=5)
        fhandler.setFormatter(log_format)
        logger.addHandler(fhandler)

    return logger
