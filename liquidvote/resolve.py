'''Resolution of delegation chains into effective votes.

In liquid democracy, a voter who does not vote directly may delegate their
influence to another voter, who may in turn delegate it further. Resolving
a ballot means following these delegations until a voter with their own
direct vote is found, or the chain ends.

The rules, applied at every voter visited:

1.  A direct vote for the proposal ends the branch. It is authoritative for
    its voter; the delegations of that voter are not consulted.
2.  Otherwise, the voter's applicable outgoing delegations are followed,
    skipping those leading to a voter already on the path. The weight of each
    delegation multiplies the weight accumulated so far.
3.  Of all branches that yield a result, the one with the highest effective
    weight is kept; on ties, the first one in delegation order.
4.  If no branch yields a result, the ballot being propagated lands on the
    current voter.
5.  Branches deeper than a fixed maximum are abandoned.

The resolver is stateless between calls and does not mutate its inputs, so
a single instance can be shared across workers resolving the same proposal.
'''

import collections
import dataclasses
import datetime
import logging
from typing import Any, Tuple, List, Dict, Optional, Mapping, Iterable

from liquidvote.vote import Ballot, DirectVote, ChoiceValue, as_ballot
from liquidvote.delegation import (
    Delegation, DelegationIndex, MAX_DEPTH, applicable_delegations
)
from liquidvote.audit import AuditEvent, AuditEventType, emit, utc_now

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class EffectiveVote:
    '''The vote attributed to a delegation chain after resolution.

    :param holder_id: The voter at which the chain ended - either the voter
        whose direct vote was used or the voter where the propagated ballot
        landed.
    :param proposal_id: The proposal voted on.
    :param choice: The choice that counts.
    :param original_voter_id: The voter whose ballot the choice comes from.
    :param is_direct: Whether the choice is the holder's own direct vote.
    :param weight: Intrinsic weight of the originating ballot.
    :param effective_weight: Intrinsic weight multiplied by the weights of
        all delegations traversed.
    :param path: The chain of voters from the voter being resolved to the
        holder.
    :param delegated_through: The delegation that delivered the vote to the
        holder; None if no delegation was traversed.
    :param topic_id: Topic of the proposal.
    :param timestamp: When the vote was resolved; informational only and
        ignored in comparisons.
    '''
    holder_id: str
    proposal_id: str
    choice: ChoiceValue
    original_voter_id: str
    is_direct: bool
    weight: float
    effective_weight: float
    path: Tuple[str, ...]
    delegated_through: Optional[Delegation] = None
    topic_id: Optional[str] = None
    timestamp: Optional[datetime.datetime] = dataclasses.field(
        default=None, compare=False
    )

    def to_ballot(self) -> Ballot:
        return Ballot(self.choice, self.effective_weight)


@dataclasses.dataclass(frozen=True)
class _Context:
    # Inputs fixed for a single resolve() call.
    origin_id: str
    proposal_id: str
    topic_id: Optional[str]
    direct_votes: Mapping[str, DirectVote]
    by_delegator: DelegationIndex
    fallback_choice: Optional[ChoiceValue]
    fallback_weight: float


class DelegationResolver:
    '''Resolve ballots through the delegation graph.

    :param max_depth: Maximum number of delegations to follow in a chain.
        Deeper branches are abandoned with a warning.
    :param clock: A zero-argument callable returning the current time, used
        to timestamp resolved votes and audit events. Defaults to UTC now.
    :param audit: A callable receiving :class:`liquidvote.audit.AuditEvent`
        objects. If None, no audit events are emitted.
    '''
    def __init__(self,
                 max_depth: int = MAX_DEPTH,
                 clock=None,
                 audit=None,
                 ):
        self.max_depth = max_depth
        self.clock = clock if clock is not None else utc_now
        self.audit = audit

    def resolve(self,
                voter_id: str,
                proposal_id: str,
                direct_votes: Mapping[str, DirectVote],
                delegations_by_delegator: DelegationIndex,
                fallback_choice: Optional[ChoiceValue] = None,
                fallback_weight: float = 1.0,
                topic_id: Optional[str] = None,
                ) -> Optional[EffectiveVote]:
        '''Determine the effective vote for a voter's ballot.

        :param voter_id: The voter whose ballot is being propagated.
        :param proposal_id: The proposal being voted on.
        :param direct_votes: Direct votes keyed by voter. Votes for other
            proposals are ignored.
        :param delegations_by_delegator: Outgoing delegations keyed by
            delegator, in order of preference.
        :param fallback_choice: The choice of the ballot being propagated,
            used where the chain ends without a direct vote. If None, such
            chains yield no result.
        :param fallback_weight: The intrinsic weight of that ballot.
        :param topic_id: Topic of the proposal; delegations restricted to
            other topics are not followed.
        :returns: The effective vote, or None if nothing could be resolved.
        '''
        ctx = _Context(
            voter_id, proposal_id, topic_id, direct_votes,
            delegations_by_delegator, fallback_choice, fallback_weight
        )
        now = self.clock()
        emit(self.audit, AuditEvent(
            AuditEventType.VOTE_CAST, voter_id, proposal_id,
            details={
                'choice': fallback_choice,
                'weight': fallback_weight,
                'topic_id': topic_id,
            },
            timestamp=now,
        ))
        result = self._resolve_from(voter_id, ctx, 1.0, (voter_id, ), 0)
        if result is None:
            logger.info('ballot of %s on %s could not be resolved',
                        voter_id, proposal_id)
            emit(self.audit, AuditEvent(
                AuditEventType.VOTE_UNRESOLVED, voter_id, proposal_id,
                timestamp=now,
            ))
            return None
        result = dataclasses.replace(result, timestamp=now)
        logger.info('ballot of %s on %s held by %s with weight %s',
                    voter_id, proposal_id, result.holder_id,
                    result.effective_weight)
        emit(self.audit, AuditEvent(
            AuditEventType.VOTE_PROPAGATED, voter_id, proposal_id,
            target_id=result.holder_id,
            details={
                'final_choice': result.choice,
                'effective_weight': result.effective_weight,
                'path': list(result.path),
                'original_weight': result.weight,
                'topic_id': topic_id,
            },
            timestamp=now,
        ))
        return result

    def _resolve_from(self,
                      current_id: str,
                      ctx: _Context,
                      multiplier: float,
                      path: Tuple[str, ...],
                      depth: int,
                      ) -> Optional[EffectiveVote]:
        if depth > self.max_depth:
            logger.warning('maximum delegation depth %d exceeded, abandoning '
                           'branch %s', self.max_depth, ' -> '.join(path))
            return None
        logger.debug('resolving %s at depth %d, multiplier %s, path %s',
                     current_id, depth, multiplier, path)
        direct = self._direct_vote(current_id, ctx)
        if direct is not None:
            logger.info('found direct vote of %s', current_id)
            return EffectiveVote(
                holder_id=current_id,
                proposal_id=ctx.proposal_id,
                choice=direct.choice,
                original_voter_id=current_id,
                is_direct=True,
                weight=direct.weight,
                effective_weight=direct.weight * multiplier,
                path=path,
                topic_id=ctx.topic_id,
            )
        best = None
        outgoing = ctx.by_delegator.get(current_id, ())
        for deleg in applicable_delegations(outgoing, ctx.topic_id):
            delegatee_id = deleg.delegatee_id
            if delegatee_id in path:
                logger.info('pruning circular delegation %s -> %s',
                            ' -> '.join(path), delegatee_id)
                continue
            result = self._resolve_from(
                delegatee_id, ctx, multiplier * deleg.weight,
                path + (delegatee_id, ), depth + 1
            )
            if result is None:
                continue
            if result.holder_id == delegatee_id:
                result = dataclasses.replace(result, delegated_through=deleg)
            if best is None or result.effective_weight > best.effective_weight:
                if best is not None:
                    logger.info('branch via %s outweighs branch via %s',
                                delegatee_id, best.path[len(path)])
                best = result
        if best is not None:
            return best
        if ctx.fallback_choice is None:
            return None
        logger.info('ballot of %s lands on %s', ctx.origin_id, current_id)
        return EffectiveVote(
            holder_id=current_id,
            proposal_id=ctx.proposal_id,
            choice=ctx.fallback_choice,
            original_voter_id=ctx.origin_id,
            is_direct=(current_id == ctx.origin_id),
            weight=ctx.fallback_weight,
            effective_weight=ctx.fallback_weight * multiplier,
            path=path,
            topic_id=ctx.topic_id,
        )

    @staticmethod
    def _direct_vote(voter_id: str, ctx: _Context) -> Optional[DirectVote]:
        vote = ctx.direct_votes.get(voter_id)
        if vote is not None and vote.proposal_id == ctx.proposal_id:
            return vote
        return None


def resolve_vote(initial_voter_id: str,
                 proposal_id: str,
                 direct_votes: Mapping[str, DirectVote],
                 delegations_by_delegator: DelegationIndex,
                 initial_choice: Optional[ChoiceValue],
                 initial_weight: float = 1.0,
                 topic_id: Optional[str] = None,
                 ) -> Optional[EffectiveVote]:
    '''Resolve a single ballot with a default resolver.

    See :meth:`DelegationResolver.resolve` for the parameters.
    '''
    return DelegationResolver().resolve(
        initial_voter_id, proposal_id, direct_votes, delegations_by_delegator,
        initial_choice, initial_weight, topic_id
    )


def collect_effective_votes(proposal_id: str,
                            direct_votes: Mapping[str, DirectVote],
                            delegations_by_delegator: DelegationIndex,
                            topic_id: Optional[str] = None,
                            pending: Optional[Mapping[str, Any]] = None,
                            resolver: Optional[DelegationResolver] = None,
                            ) -> Dict[str, EffectiveVote]:
    '''Resolve all ballots cast on a proposal, keyed by their holders.

    Every direct vote for the proposal is resolved, followed by the pending
    ballots of voters who have not voted directly on it. Each holder keeps a
    single effective vote; a later resolution ending at the same holder
    replaces an earlier one.

    :param proposal_id: The proposal to collect votes for.
    :param direct_votes: Direct votes keyed by voter.
    :param delegations_by_delegator: Outgoing delegations keyed by delegator.
    :param topic_id: Topic of the proposal.
    :param pending: Ballots (or ``(choice, weight)`` pairs) keyed by voter,
        to be propagated for voters without a direct vote on the proposal.
    :param resolver: The resolver to use; a default one if not given.
    :returns: Effective votes keyed by holder, in order of first resolution.
    '''
    if resolver is None:
        resolver = DelegationResolver()
    to_propagate = []
    for voter_id, vote in direct_votes.items():
        if vote.proposal_id == proposal_id:
            to_propagate.append((voter_id, Ballot(vote.choice, vote.weight)))
    if pending:
        for voter_id, item in pending.items():
            direct = direct_votes.get(voter_id)
            if direct is not None and direct.proposal_id == proposal_id:
                continue
            to_propagate.append((voter_id, as_ballot(item)))
    effective = collections.OrderedDict()
    for voter_id, ballot in to_propagate:
        result = resolver.resolve(
            voter_id, proposal_id, direct_votes, delegations_by_delegator,
            ballot.choice, ballot.weight, topic_id
        )
        if result is not None:
            if result.holder_id in effective:
                logger.debug('effective vote of %s replaced by ballot of %s',
                             result.holder_id, voter_id)
            effective[result.holder_id] = result
    logger.info('collected %d effective votes from %d ballots on %s',
                len(effective), len(to_propagate), proposal_id)
    return dict(effective)


def to_ballots(effective_votes: Iterable[EffectiveVote]) -> List[Ballot]:
    '''Turn effective votes into ballots weighted by their effective weight.

    Accepts an iterable of effective votes or a mapping of them.
    '''
    if hasattr(effective_votes, 'values'):
        effective_votes = effective_votes.values()
    return [vote.to_ballot() for vote in effective_votes]
