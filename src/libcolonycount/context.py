"""
Activity contexts decouple the counting algorithm from whatever runs it.

A context hands the algorithm its parameters, takes its return value, optionally gives it a screen
to draw progress on, and tells it when to stop. The console context has no screen, the desktop one
shows the screen in an OpenCV window.
"""
import logging
from abc import ABC, abstractmethod

import cv2
import numpy as np

from libcolonycount import constants as CONSTANTS


class ActivityContext(ABC):
    @abstractmethod
    def get_param(self, n):
        pass

    @abstractmethod
    def get_param_count(self):
        pass

    @abstractmethod
    def set_return_value(self, value):
        pass

    def get_screen(self):
        """
        BGR image the algorithm may draw progress on, or None if there is nothing to show it on
        """
        return None

    def update_screen(self):
        pass

    def report(self, message, *args):
        logging.info(message, *args)

    def is_aborted(self):
        return False


class ConsoleActivityContext(ActivityContext):
    def __init__(self, params=()):
        self.params = list(params)
        self.return_value = None

    def get_param(self, n):
        return self.params[n]

    def get_param_count(self):
        return len(self.params)

    def set_return_value(self, value):
        self.return_value = value


class DesktopActivityContext(ConsoleActivityContext):
    """
    console context with an 800x480 screen shown in a window named "screen"
    """

    def __init__(self, params=(), screen_size=CONSTANTS.SCREEN_SIZE):
        super().__init__(params)
        width, height = screen_size
        self.screen = np.zeros((height, width, 3), dtype=np.uint8)
        self.update_screen()

    def get_screen(self):
        return self.screen

    def update_screen(self):
        cv2.imshow("screen", self.screen)
        cv2.waitKey(1)
