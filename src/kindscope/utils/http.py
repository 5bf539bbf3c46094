"""HTTP helpers for kindscope.

Bounded JSON reading for ``aiohttp`` responses, so an oversized reply from a
remote API cannot exhaust memory.

See Also:
    [KindNameResolver][kindscope.explorer.kinds.KindNameResolver]: Reads
        GitHub API responses through
        [read_bounded_json()][kindscope.utils.http.read_bounded_json].
"""

from __future__ import annotations

import json
from typing import Any

import aiohttp


async def read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read a whole response body, failing once it grows past *max_size*.

    Chunks are accumulated until EOF because a single read of a chunked body
    may return fewer bytes than are available.

    Raises:
        ValueError: If the body exceeds *max_size* bytes.
    """
    body = bytearray()
    while chunk := await response.content.read(max_size + 1 - len(body)):
        body.extend(chunk)
        if len(body) > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
    return bytes(body)


async def read_bounded_json(response: aiohttp.ClientResponse, max_size: int) -> Any:
    """Read and parse a JSON response body with size enforcement.

    Raises:
        ValueError: If the body exceeds *max_size*.
        json.JSONDecodeError: If the body is not valid JSON.
    """
    return json.loads(await read_bounded(response, max_size))
