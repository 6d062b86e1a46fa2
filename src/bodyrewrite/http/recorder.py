"""
In-memory ResponseWriter.

Records what a handler writes so tests (and embedding code) can inspect
the response without a socket:

    recorder = ResponseRecorder()
    handler(recorder, request)
    response = recorder.result()
    assert response.status == 200
"""

from typing import List, Optional

from .headers import Headers
from .response import HTTPResponse
from .writer import Flusher, ResponseWriter, is_informational


class ResponseRecorder(ResponseWriter, Flusher):
    """
    ResponseWriter that keeps everything in memory.

    Headers changed after the status is committed still show up in
    `headers`, but not in `result()`, which uses the snapshot taken at
    commit time, like a real client would see it.
    """

    def __init__(self):
        self._headers = Headers()
        self._snapshot: Optional[Headers] = None
        self._body = bytearray()
        self.status_code: Optional[int] = None
        self.informational: List[int] = []
        self.flushed = False

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @property
    def committed(self) -> bool:
        return self.status_code is not None

    def write_status(self, status_code: int) -> None:
        if self.committed:
            return
        if is_informational(status_code):
            self.informational.append(status_code)
            return
        self.status_code = status_code
        self._snapshot = self._headers.copy()

    def write(self, data: bytes) -> int:
        if not self.committed:
            self.write_status(200)
        self._body.extend(data)
        return len(data)

    def flush(self) -> None:
        if not self.committed:
            self.write_status(200)
        self.flushed = True

    def result(self) -> HTTPResponse:
        """The response as a client would receive it."""
        if self._snapshot is None:
            headers = self._headers.copy()
        else:
            headers = self._snapshot.copy()
        return HTTPResponse(
            status=self.status_code or 200,
            headers=headers,
            body=self.body,
        )
