"""Training feedback: review outcomes that feed the learned adjuster"""

from .services import TrainingService

__all__ = ["TrainingService"]
