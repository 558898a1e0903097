"""ArqOS backend: studio onboarding and organization setup."""

__version__ = "0.1.0"
