from .responses import HealthResponse

__all__ = ['HealthResponse']
