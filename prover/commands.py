# prover/commands.py
"""
Closed command and effect sets.

Commands are built by the transport from decoded request data and fed to
dispatch(). Effects come back out, in order, for the transport to realize:
responses go on the wire, log/error messages go to the logger.
"""
import datetime
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from prover.store import ProofStatus


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Commands
class SubmitSnark(_Frozen):
    kind: Literal["submit-snark"] = "submit-snark"
    proof: str
    public_inputs: Tuple[str, ...] = ()
    verification_key: str
    proof_system: str
    submitter: str
    notes: str = ""
    now: datetime.datetime


class GetSnark(_Frozen):
    kind: Literal["get-snark"] = "get-snark"
    id: int


class ListSnarks(_Frozen):
    kind: Literal["list-snarks"] = "list-snarks"


class DeleteSnark(_Frozen):
    kind: Literal["delete-snark"] = "delete-snark"
    id: int


class UpdateStatus(_Frozen):
    kind: Literal["update-status"] = "update-status"
    id: int
    status: ProofStatus
    error_message: Optional[str] = None


Command = Annotated[
    Union[SubmitSnark, GetSnark, ListSnarks, DeleteSnark, UpdateStatus],
    Field(discriminator="kind"),
]


# --- Effects
class ResponseEffect(_Frozen):
    kind: Literal["response"] = "response"
    code: int
    body: str  # serialized JSON text


class LogEffect(_Frozen):
    kind: Literal["log"] = "log"
    message: str


class ErrorEffect(_Frozen):
    kind: Literal["error"] = "error"
    message: str


Effect = Annotated[
    Union[ResponseEffect, LogEffect, ErrorEffect],
    Field(discriminator="kind"),
]
