import itertools
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import urlsplit

import httpx
import pytest

TERMINAL_PHASES = {"COMPLETED", "ERROR", "ABORTED", "CANCELED", "TIMEOUT"}


class FakeTAPServer:
    """Scripted TAP service served through httpx.MockTransport.

    Every submitted job replays the same phase script; the last phase repeats
    once the script runs out.

    discovery:
        "redirect" - 303 with an absolute Location
        "relative" - 303 with a path-only Location
        "xml"      - 200 with <jobId> in the body
        "invalid"  - submit_status with a body that names no job
    fail_on: "submit", "run", "phase" or "result" raises a ConnectError there.
    """

    def __init__(
        self,
        phases: Iterable[str] = ("EXECUTING", "COMPLETED"),
        result: bytes = b"<VOTABLE/>",
        discovery: str = "redirect",
        submit_status: int = 200,
        fail_on: Optional[str] = None,
        sync_status: int = 200,
        base_url: str = "http://svc/tap",
        first_job_id: int = 42,
    ):
        self.base_url = base_url
        self.phases = list(phases)
        self.result = result
        self.discovery = discovery
        self.submit_status = submit_status
        self.fail_on = fail_on
        self.sync_status = sync_status

        self.calls: List[Tuple[str, str]] = []
        self.submissions: List[httpx.Request] = []
        self.run_bodies: List[bytes] = []
        self.max_running = 0

        self._scripts: Dict[str, List[str]] = {}
        self._running: Set[str] = set()
        self._ids = itertools.count(first_job_id)
        self._async_path = urlsplit(base_url).path + "/async"
        self._sync_path = urlsplit(base_url).path + "/sync"

    @property
    def jobs_url(self) -> str:
        return f"{self.base_url}/async"

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def phase_polls(self, job_id: str) -> int:
        return self.calls.count(("GET", f"{self._async_path}/{job_id}/phase"))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if path == self._sync_path:
            self.submissions.append(request)
            return httpx.Response(self.sync_status, content=self.result)

        if path == self._async_path:
            return self._submit(request)

        if not path.startswith(self._async_path + "/"):
            return httpx.Response(404)

        job_id, _, action = path[len(self._async_path) + 1:].partition("/")
        if job_id not in self._scripts:
            return httpx.Response(404)

        if action == "phase" and request.method == "POST":
            self._fail_if("run", request)
            self.run_bodies.append(request.content)
            self._running.add(job_id)
            self.max_running = max(self.max_running, len(self._running))
            return httpx.Response(303, headers={"Location": f"{self.jobs_url}/{job_id}"})

        if action == "phase":
            self._fail_if("phase", request)
            script = self._scripts[job_id]
            phase = script.pop(0) if len(script) > 1 else script[0]
            if phase in TERMINAL_PHASES:
                self._running.discard(job_id)
            return httpx.Response(200, text=f"{phase}\n")

        if action == "results/result":
            self._fail_if("result", request)
            return httpx.Response(200, content=self.result)

        return httpx.Response(404)

    def _fail_if(self, stage: str, request: httpx.Request) -> None:
        if self.fail_on == stage:
            raise httpx.ConnectError(f"connection refused during {stage}", request=request)

    def _submit(self, request: httpx.Request) -> httpx.Response:
        self._fail_if("submit", request)
        self.submissions.append(request)

        job_id = str(next(self._ids))
        self._scripts[job_id] = list(self.phases)

        if self.discovery == "redirect":
            return httpx.Response(303, headers={"Location": f"{self.jobs_url}/{job_id}"})
        if self.discovery == "relative":
            return httpx.Response(303, headers={"Location": f"{self._async_path}/{job_id}"})
        if self.discovery == "xml":
            body = (
                '<?xml version="1.0" encoding="UTF-8"?>'
                f"<job><jobId>{job_id}</jobId><phase>PENDING</phase></job>"
            )
            return httpx.Response(200, text=body)
        return httpx.Response(self.submit_status, text="<error>no job created</error>")


@pytest.fixture
def make_tap_server():
    """Factory for scripted TAP services."""
    return FakeTAPServer
