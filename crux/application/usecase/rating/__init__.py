"""Rating use cases."""

from crux.application.usecase.rating.rate import RateRequest, RateResponse, RateUseCase

__all__ = ["RateRequest", "RateResponse", "RateUseCase"]
