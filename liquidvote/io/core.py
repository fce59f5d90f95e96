"""Shared functionality for proposal file I/O. Internal."""

import dataclasses
import json
from typing import Any, List, Dict, Tuple, Callable, TextIO, Optional

from liquidvote.delegation import Delegation
from liquidvote.system import VotingMethod
from liquidvote.vote import Ballot, DirectVote


class ParseError(Exception):
    """An input that is invalid according to the given format was detected."""
    pass


@dataclasses.dataclass
class ProposalSetup:
    """A container for data returnable from a proposal file."""
    proposal_id: str
    method: Optional[VotingMethod] = None
    topic_id: Optional[str] = None
    title: Optional[str] = None
    direct_votes: Dict[str, DirectVote] = dataclasses.field(
        default_factory=dict
    )
    delegations: List[Delegation] = dataclasses.field(default_factory=list)
    pending: Dict[str, Ballot] = dataclasses.field(default_factory=dict)


def loaders(document_loader: Callable[..., ProposalSetup]
            ) -> Tuple[Callable[..., ProposalSetup], Callable[..., ProposalSetup]]:
    """Create load() and loads() functions from a JSON document parser."""

    def load(file: TextIO, **kwargs) -> ProposalSetup:
        return document_loader(_parse_json(file.read()), **kwargs)

    def loads(text: str, **kwargs) -> ProposalSetup:
        return document_loader(_parse_json(text), **kwargs)

    return load, loads


def dumpers(document_dumper: Callable[..., Dict[str, Any]]
            ) -> Tuple[Callable[..., None], Callable[..., str]]:
    """Create dump() and dumps() functions from a JSON document builder."""

    def dump(file: TextIO, *args, **kwargs) -> None:
        json.dump(document_dumper(*args, **kwargs), file, indent=2)
        file.write('\n')

    def dumps(*args, **kwargs) -> str:
        return json.dumps(document_dumper(*args, **kwargs), indent=2)

    return dump, dumps


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as err:
        raise ParseError(f'invalid JSON: {err}') from err
