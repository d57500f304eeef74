import cv2, numpy as np
from PySide6 import QtGui


def mirror(frame: np.ndarray) -> np.ndarray:
    # front camera preview: flip around the vertical axis
    return cv2.flip(frame, 1)


def bgr_to_qimage(frame: np.ndarray, mirrored: bool = True) -> QtGui.QImage:
    if mirrored:
        frame = mirror(frame)
    rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    rgb = np.ascontiguousarray(rgb)
    h, w = rgb.shape[:2]
    img = QtGui.QImage(rgb.data, w, h, 3 * w, QtGui.QImage.Format_RGB888)
    # QImage does not own the numpy buffer
    return img.copy()
