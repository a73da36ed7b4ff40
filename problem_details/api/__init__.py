from .adapters import BufferedResponse, StarletteRequest
from .exception_handlers import install_problem_details

__all__ = ["BufferedResponse", "StarletteRequest", "install_problem_details"]
