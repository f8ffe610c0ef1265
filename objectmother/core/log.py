import logging
import os
import tempfile
from functools import cached_property

from objectmother.core.config import ObjectMotherConfig

log = logging.getLogger('objectmother')


class LoggingManager():
    """
    Context manager that attaches a handler to the objectmother logger for
    the duration of a test session and detaches it again afterwards.
    """
    def __init__(self):
        self.delete_temp_file = True

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args, **kwargs):
        self.stop()

        # Allow raise
        return False

    @property
    def _format(self):
        return ("%(asctime)s %(process)d %(levelname)s %(name)s "
                "[-] %(message)s")

    @cached_property
    def _handler(self):
        if ObjectMotherConfig.debug_mode:
            return logging.StreamHandler()

        return logging.FileHandler(self.temp_log_path, delay=True)

    @cached_property
    def temp_log_path(self):
        fd, path = tempfile.mkstemp(suffix='objectmother.log')
        os.close(fd)
        return path

    @property
    def level(self):
        if ObjectMotherConfig.debug_mode:
            return logging.DEBUG

        return ObjectMotherConfig.log_level.upper()

    def start(self, level=None):
        log.setLevel(level or self.level)
        if log.handlers:
            return

        self._handler.setFormatter(logging.Formatter(self._format))
        log.addHandler(self._handler)

    def stop(self):
        if self._handler in log.handlers:
            log.removeHandler(self._handler)
            self._handler.close()

        if os.path.exists(self.temp_log_path) and self.delete_temp_file:
            log.debug("removing temporary log file %s", self.temp_log_path)
            os.remove(self.temp_log_path)
