"""Background execution of solver requests.

The solver is synchronous and has no cancellation points. Hosts that must
stay responsive run each request on its own thread; a newer request
supersedes older ones, whose responses are dropped when they arrive instead
of interrupting the computation.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from bnb import compute_plan
from errors import FuelPlanError, InvariantViolation
from models import Canister, CanisterSpec, Plan, SPECS


log = logging.getLogger(__name__)


@dataclass
class PlanRequest:
    request_id: int
    canisters: List[Canister]


@dataclass
class PlanResponse:
    """Outcome of one request: a plan when ok, otherwise an error message."""
    request_id: int
    ok: bool
    plan: Optional[Plan] = None
    error: Optional[str] = None


def handle_request(request: PlanRequest, specs: Sequence[CanisterSpec] = SPECS) -> PlanResponse:
    """Run the solver for one request and wrap the outcome in a response."""
    try:
        plan = compute_plan(request.canisters, specs)
    except FuelPlanError as exc:
        return PlanResponse(request_id=request.request_id, ok=False, error=str(exc))
    except InvariantViolation as exc:
        log.exception("Invariant violation while solving request %d", request.request_id)
        return PlanResponse(request_id=request.request_id, ok=False, error=f"internal error: {exc}")
    return PlanResponse(request_id=request.request_id, ok=True, plan=plan)


class PlanWorker:
    """Runs requests on background threads, keeping only the newest response.

    Attributes:
        specs: Canister specs passed to the solver
        discarded: Number of responses dropped because a newer request existed
    """

    def __init__(self, specs: Sequence[CanisterSpec] = SPECS,
                 on_response: Optional[Callable[[PlanResponse], None]] = None):
        self.specs = tuple(specs)
        self.on_response = on_response
        self.discarded = 0
        self._lock = threading.Lock()
        self._latest_id = 0
        self._response: Optional[PlanResponse] = None
        self._ready = threading.Event()

    def submit(self, canisters: Sequence[Canister]) -> int:
        """Start solving `canisters`; returns the request id."""
        with self._lock:
            self._latest_id += 1
            request = PlanRequest(request_id=self._latest_id, canisters=list(canisters))
            self._response = None
            self._ready.clear()
        thread = threading.Thread(target=self._run, args=(request,),
                                  name=f"plan-request-{request.request_id}", daemon=True)
        thread.start()
        return request.request_id

    def _run(self, request: PlanRequest):
        response = handle_request(request, self.specs)
        with self._lock:
            if request.request_id != self._latest_id:
                self.discarded += 1
                log.debug("Dropping response %d (latest is %d)", request.request_id, self._latest_id)
                return
            self._response = response
            self._ready.set()
        if self.on_response is not None:
            self.on_response(response)

    @property
    def latest_request_id(self) -> int:
        with self._lock:
            return self._latest_id

    def wait(self, timeout: Optional[float] = None) -> Optional[PlanResponse]:
        """Block until the newest request has a response, or the timeout expires."""
        if not self._ready.wait(timeout):
            return None
        with self._lock:
            return self._response
