"""
Sensor driver selection
"""
from typing import Any, Optional

from ..core.logger import logger
from .mock_sensor import MockBodySensor
from .sensor_interface import BodySensorInterface


def create_sensor(sensor_config: Optional[Any] = None) -> Optional[BodySensorInterface]:
    """
    Create the sensor selected by the `sensor` config section

    Args:
        sensor_config: config section (DictConfig or dict) with `driver`
                       and driver-specific keys

    Returns:
        sensor instance, or None when no sensor is configured/known
        (the pipeline then runs in degraded no-data mode)
    """
    cfg = sensor_config if sensor_config is not None else {}
    driver = str(cfg.get('driver', 'mock')).lower()

    if driver == 'mock':
        return MockBodySensor(
            body_count=int(cfg.get('body_count', 6)),
            body_fps=float(cfg.get('body_fps', 30.0)),
            face_fps=float(cfg.get('face_fps', 15.0)),
            subjects=int(cfg.get('mock_subjects', 2)),
        )

    if driver in ('none', ''):
        logger.warning("Sensor driver disabled (sensor.driver=none)")
        return None

    logger.warning(f"Unknown sensor driver '{driver}', running without sensor")
    return None
