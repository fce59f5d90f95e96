"""JSON proposal files.

A proposal file is a JSON object describing a single proposal to be counted::

    {
      "proposal_id": "p1",
      "title": "Park renovation",
      "topic_id": "environment",
      "method": "first_past_the_post",
      "direct_votes": [
        {"voter_id": "alice", "choice": "yes", "weight": 1.0}
      ],
      "delegations": [
        {"delegator_id": "bob", "delegatee_id": "alice", "weight": 0.8,
         "topic_id": null, "active": true, "valid_until": null}
      ],
      "pending": [
        {"voter_id": "bob", "choice": "no", "weight": 1.0}
      ]
    }

Only ``proposal_id`` is mandatory. Choices are given as strings (single
choice), lists (multiple choice) or objects mapping options to ranks or
ratings; which of the latter two an object represents is determined by the
voting method. The method may be given by its value (``majority_runoff``)
or its camel case name (``majorityRunoff``). ``active`` must be a JSON
boolean (true by default) and ``valid_until`` an ISO 8601 timestamp.
"""

import datetime
from typing import Any, Dict, Optional

import liquidvote.io.core
from liquidvote.delegation import Delegation, DelegationError
from liquidvote.io.core import ParseError, ProposalSetup
from liquidvote.system import VotingMethod, get_system
from liquidvote.vote import (
    Ballot, ChoiceKind, DirectVote, VoteError, coerce_choice
)


def load_document(document: Any,
                  method: Optional[VotingMethod] = None,
                  ) -> ProposalSetup:
    """Create a proposal setup from a parsed JSON document.

    :param document: The parsed JSON object.
    :param method: A voting method overriding the one given in the document.
        The method determines how choice objects are interpreted.
    :raises ParseError: If the document is malformed.
    """
    if not isinstance(document, dict):
        raise ParseError(f'proposal must be a JSON object, got {document!r}')
    proposal_id = _required(document, 'proposal_id', 'proposal')
    topic_id = document.get('topic_id')
    if method is None and document.get('method') is not None:
        method = _parse_method(document['method'])
    kind = get_system(method).kind if method is not None else None
    direct_votes = {}
    for i, record in enumerate(document.get('direct_votes', [])):
        voter_id = _required(record, 'voter_id', f'direct vote {i}')
        direct_votes[voter_id] = DirectVote(
            voter_id=voter_id,
            proposal_id=record.get('proposal_id', proposal_id),
            choice=_parse_choice(record, kind, f'direct vote {i}'),
            weight=_parse_weight(record, f'direct vote {i}'),
            topic_id=record.get('topic_id', topic_id),
        )
    pending = {}
    for i, record in enumerate(document.get('pending', [])):
        voter_id = _required(record, 'voter_id', f'pending ballot {i}')
        pending[voter_id] = Ballot(
            _parse_choice(record, kind, f'pending ballot {i}'),
            _parse_weight(record, f'pending ballot {i}'),
        )
    return ProposalSetup(
        proposal_id=proposal_id,
        method=method,
        topic_id=topic_id,
        title=document.get('title'),
        direct_votes=direct_votes,
        delegations=[
            _parse_delegation(record, i)
            for i, record in enumerate(document.get('delegations', []))
        ],
        pending=pending,
    )


load, loads = liquidvote.io.core.loaders(load_document)


def dump_document(setup: ProposalSetup) -> Dict[str, Any]:
    """Create a JSON-ready document from a proposal setup."""
    document = {'proposal_id': setup.proposal_id}
    if setup.title is not None:
        document['title'] = setup.title
    if setup.topic_id is not None:
        document['topic_id'] = setup.topic_id
    if setup.method is not None:
        document['method'] = setup.method.value
    document['direct_votes'] = [
        {
            'voter_id': vote.voter_id,
            'choice': vote.choice.to_raw(),
            'weight': vote.weight,
        }
        for vote in setup.direct_votes.values()
    ]
    document['delegations'] = [
        _dump_delegation(deleg) for deleg in setup.delegations
    ]
    document['pending'] = [
        {
            'voter_id': voter_id,
            'choice': ballot.choice.to_raw(),
            'weight': ballot.weight,
        }
        for voter_id, ballot in setup.pending.items()
    ]
    return document


dump, dumps = liquidvote.io.core.dumpers(dump_document)


def _dump_delegation(deleg: Delegation) -> Dict[str, Any]:
    record = {
        'delegator_id': deleg.delegator_id,
        'delegatee_id': deleg.delegatee_id,
        'weight': deleg.weight,
        'topic_id': deleg.topic_id,
        'active': deleg.active,
        'valid_until': (
            deleg.valid_until.isoformat() if deleg.valid_until else None
        ),
    }
    if deleg.id is not None:
        record['id'] = deleg.id
    return record


def _required(record: Any, key: str, what: str) -> Any:
    if not isinstance(record, dict):
        raise ParseError(f'{what} must be a JSON object, got {record!r}')
    try:
        return record[key]
    except KeyError as err:
        raise ParseError(f'{what} is missing {key!r}') from err


def _parse_method(name: str) -> VotingMethod:
    try:
        return VotingMethod(name)
    except ValueError as err:
        raise ParseError(f'unknown voting method: {name!r}') from err


def _parse_choice(record: Dict[str, Any],
                  kind: Optional[ChoiceKind],
                  what: str,
                  ):
    raw = _required(record, 'choice', what)
    try:
        return coerce_choice(raw, kind)
    except VoteError as err:
        raise ParseError(f'{what}: {err}') from err


def _parse_weight(record: Dict[str, Any], what: str) -> float:
    weight = record.get('weight', 1.0)
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise ParseError(f'{what}: invalid weight {weight!r}')
    return float(weight)


def _parse_active(record: Dict[str, Any], what: str) -> bool:
    active = record.get('active', True)
    if not isinstance(active, bool):
        raise ParseError(f'{what}: invalid active flag {active!r}')
    return active


def _parse_delegation(record: Any, i: int) -> Delegation:
    what = f'delegation {i}'
    delegator_id = _required(record, 'delegator_id', what)
    delegatee_id = _required(record, 'delegatee_id', what)
    valid_until = record.get('valid_until')
    if valid_until is not None:
        valid_until = _parse_timestamp(valid_until, what)
    try:
        return Delegation(
            delegator_id=delegator_id,
            delegatee_id=delegatee_id,
            weight=_parse_weight(record, what),
            topic_id=record.get('topic_id'),
            active=_parse_active(record, what),
            valid_until=valid_until,
            id=record.get('id'),
        )
    except DelegationError as err:
        raise ParseError(f'{what}: {err}') from err


def _parse_timestamp(value: Any, what: str) -> datetime.datetime:
    try:
        timestamp = datetime.datetime.fromisoformat(value)
    except (TypeError, ValueError) as err:
        raise ParseError(f'{what}: invalid timestamp {value!r}') from err
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)
    return timestamp
