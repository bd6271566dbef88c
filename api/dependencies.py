"""
FastAPI dependencies.

The Engine is built once per process (lazily, so importing the app does not
need database credentials) and can be swapped in tests via
`app.dependency_overrides[get_engine]`.

The acting subject comes from the `X-Subject-Id` header. Anonymous callers get
a generated pseudo id, echoed back in the same header so the client can keep it.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Response

from services.engine import Engine, build_engine
from services.identity import FixedIdentityProvider, generate_anonymous_id

SUBJECT_HEADER = "X-Subject-Id"


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return build_engine()


def get_identity(
    response: Response,
    x_subject_id: Optional[str] = Header(None, alias=SUBJECT_HEADER),
) -> FixedIdentityProvider:
    subject_id = (x_subject_id or "").strip() or generate_anonymous_id()
    response.headers[SUBJECT_HEADER] = subject_id
    return FixedIdentityProvider(subject_id)


EngineDep = Depends(get_engine)
IdentityDep = Depends(get_identity)
