"""
Core domain models, fixed-point math, contracts, configuration and logging.

This module contains the foundational building blocks that are independent
of external collaborators (strategy, custody, unit vault).
"""
