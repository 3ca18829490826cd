# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
from .flask_jflux import JFlux


__all__ = [
    'JFlux',
]
