"""
Request Lifecycle

State machine, exchange codes and the service that applies transitions to lending requests.
"""

from lendly_api.lifecycle.service import RequestLifecycleService

__all__ = ["RequestLifecycleService"]
