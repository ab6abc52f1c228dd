from .calorie_estimate import CalorieEstimate
from .image_source import ImageSource, resolve_image_url
from .message import InboundMessage, MealLogEntry

__all__ = [
    "CalorieEstimate",
    "ImageSource",
    "resolve_image_url",
    "InboundMessage",
    "MealLogEntry",
]
