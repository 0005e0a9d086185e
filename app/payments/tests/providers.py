"""
Provider doubles for settlement tests.
"""

from payments.adapters import SettlementResult


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


class ScriptedProvider:
    """
    Provider that plays back one outcome per call.

    Each outcome is an exception instance (raised) or None (success).
    Once the script runs out every call succeeds.
    """

    name = "mock"

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def _play(self, request):
        self.calls.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if outcome is not None:
            raise outcome

    def send_payout(self, request):
        self._play(request)
        return SettlementResult(provider_ref=f"MOCK-{request.payout_id}")

    def send_refund(self, request):
        self._play(request)
        return SettlementResult(provider_ref=f"MOCK-REFUND-{request.refund_id}")
