from .base import BaseGenerateAdapter, BaseImageAdapter, build_session
from .gemini import GeminiAdapter, GeminiImageAdapter
from .imagen import ImagenAdapter
