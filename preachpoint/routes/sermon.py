"""
Preach Point Backend — Sermon Processing Route
================================================

What:  Handles /process-sermon for every HTTP method.
Why:   Entry point for the core feature: transcription in, study guide out.
How:   Registered as a plain Starlette route with no method list, so every
       verb (TRACE and WebDAV verbs included) reaches the endpoint. Preflight
       and 405 responses then carry the same CORS headers and error shape as
       everything else. The route reads the raw request and delegates every
       decision to SermonProcessor.

Request Flow:
    1. Client sends JSON {transcription, bibleVersion?}
    2. Route hands method, headers, body and peer address to the processor
    3. Processor returns status, JSON body (or none) and headers
    4. Route converts that to a Starlette response
"""

import logging

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse, Response

from preachpoint.services.sermon_processor import sermon_processor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sermons"])


async def process_sermon(request: Request) -> Response:
    body = await request.body()
    peer_address = request.client.host if request.client else None
    logger.debug("%s /process-sermon from %s (%d bytes)", request.method, peer_address, len(body))

    result = await sermon_processor.process(
        method=request.method,
        headers=request.headers,
        body=body,
        peer_address=peer_address,
    )

    if result.content is None:
        return Response(status_code=result.status_code, headers=result.headers)
    return JSONResponse(
        status_code=result.status_code,
        content=result.content,
        headers=result.headers,
    )


# methods=None: the route matches every method and SermonProcessor answers 405.
router.add_route("/process-sermon", process_sermon, methods=None)
