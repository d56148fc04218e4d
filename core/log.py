import os
import logging
import logging.handlers

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(debug=False):
    logger = logging.getLogger()

    if debug is True:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if getattr(logger, '_netx_configured', False) is True:
        return logger

    # Configure screen.

    sh = logging.StreamHandler()
    sh.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(sh)

    # Configure Syslog.
    if os.path.exists('/dev/log') is True:
        formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')

        sh2 = logging.handlers.SysLogHandler(
                address='/dev/log',
                facility=logging.handlers.SysLogHandler.LOG_LOCAL1)

        sh2.setFormatter(formatter)
        logger.addHandler(sh2)

    logger._netx_configured = True
    return logger
