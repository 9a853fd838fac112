"""Container runtime discovery component."""

from .label_manager import LabelManager, LABEL_ENABLE, LABEL_NAME, LABEL_PORT

__all__ = ['LabelManager', 'LABEL_ENABLE', 'LABEL_NAME', 'LABEL_PORT']
