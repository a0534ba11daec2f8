"""
Return Service

Return and reverse pickup microservice providing:
- Return eligibility checks and return requests
- Operator status workflow (approve, reject, process, complete)
- Carrier reverse pickup scheduling, tracking and cancellation
- Tracking-driven status updates

Port: 8241
"""

__version__ = "1.0.0"
__service__ = "return_service"
