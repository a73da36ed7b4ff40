from problem_details.core.errors import (
    ProblemDetailsError,
    ProblemDetailsErrorProtocol,
    is_problem_details_error,
)
from problem_details.handlers import ProblemDetailsMiddleware, ProblemDetailsNotFoundHandler
from problem_details.messages import CallableResponseFactoryDecorator
from problem_details.negotiation import NegotiatedFormat, negotiate, negotiate_or_decline
from problem_details.payload import DebugConfig, ProblemPayloadBuilder
from problem_details.responses import ProblemDetailsResponseFactory

__all__ = [
    "CallableResponseFactoryDecorator",
    "DebugConfig",
    "NegotiatedFormat",
    "ProblemDetailsError",
    "ProblemDetailsErrorProtocol",
    "ProblemDetailsMiddleware",
    "ProblemDetailsNotFoundHandler",
    "ProblemDetailsResponseFactory",
    "ProblemPayloadBuilder",
    "is_problem_details_error",
    "negotiate",
    "negotiate_or_decline",
]
