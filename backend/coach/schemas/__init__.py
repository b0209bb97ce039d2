from .coaching import (
    CoachingRequest,
    CoachingApiResponse,
    RouteRequest,
    FeedbackRequest,
    DiagnosticQuestions,
)
