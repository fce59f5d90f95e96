'''The closed set of supported voting methods and the tabulation entry point.

Each :class:`VotingMethod` maps to a named :class:`VotingSystem` wrapping its
tabulator. :func:`tabulate` dispatches over this mapping; :func:`tally`
additionally resolves the delegations of a proposal before tabulating.
'''

import enum
import logging
import re
from typing import Any, Dict, Iterable, Mapping, Optional

import liquidvote.evaluate
import liquidvote.evaluate.approval
import liquidvote.evaluate.cardinal
import liquidvote.evaluate.condorcet
import liquidvote.evaluate.positional
import liquidvote.evaluate.sequential
import liquidvote.resolve
from liquidvote.delegation import DelegationIndex
from liquidvote.evaluate.core import TabulationResult, Tabulator
from liquidvote.persist import simple_serialization
from liquidvote.vote import ChoiceKind, DirectVote

logger = logging.getLogger(__name__)


class VotingMethod(enum.Enum):
    '''The voting methods available for proposals.

    Members can be looked up by their value (``'first_past_the_post'``) or
    by their camel case name as used in stored proposals
    (``'firstPastThePost'``); any other value raises a ValueError.
    '''
    FIRST_PAST_THE_POST = 'first_past_the_post'
    APPROVAL = 'approval'
    MAJORITY_RUNOFF = 'majority_runoff'
    SCHULZE = 'schulze'
    INSTANT_RUNOFF = 'instant_runoff'
    STAR = 'star'
    RANGE = 'range'
    MAJORITY_JUDGMENT = 'majority_judgment'
    QUADRATIC = 'quadratic'
    CONDORCET = 'condorcet'
    BORDA = 'borda'
    CUMULATIVE = 'cumulative'
    KEMENY_YOUNG = 'kemeny_young'
    DUAL_CHOICE = 'dual_choice'
    WEIGHT = 'weight'

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        if value.upper() in cls.__members__:
            return cls[value.upper()]
        key = re.sub(r'(?<!^)(?=[A-Z])', '_', value).lower()
        key = re.sub(r'_(voting|count)$', '', key)
        for member in cls:
            if member.value == key:
                return member
        return None


@simple_serialization
class VotingSystem:
    '''A named voting method. Wraps a tabulator.

    :param name: Human-readable name of the method.
    :param tabulator: The tabulator implementing the method.
    '''
    def __init__(self, name: str, tabulator: Tabulator):
        self.name = name
        self.tabulator = tabulator

    @property
    def kind(self) -> ChoiceKind:
        return self.tabulator.kind

    def tabulate(self, ballots: Iterable[Any]) -> TabulationResult:
        '''Return the tabulator's result for the ballots given.'''
        return self.tabulator.tabulate(ballots)


SYSTEMS: Dict[VotingMethod, VotingSystem] = {
    VotingMethod.FIRST_PAST_THE_POST: VotingSystem(
        'First Past the Post', liquidvote.evaluate.Plurality()
    ),
    VotingMethod.APPROVAL: VotingSystem(
        'Approval Voting', liquidvote.evaluate.approval.Approval()
    ),
    VotingMethod.MAJORITY_RUNOFF: VotingSystem(
        'Majority Runoff', liquidvote.evaluate.sequential.MajorityRunoff()
    ),
    VotingMethod.SCHULZE: VotingSystem(
        'Schulze Method', liquidvote.evaluate.condorcet.Schulze()
    ),
    VotingMethod.INSTANT_RUNOFF: VotingSystem(
        'Instant Runoff', liquidvote.evaluate.sequential.InstantRunoff()
    ),
    VotingMethod.STAR: VotingSystem(
        'STAR Voting', liquidvote.evaluate.cardinal.StarVoting()
    ),
    VotingMethod.RANGE: VotingSystem(
        'Range Voting', liquidvote.evaluate.cardinal.RangeVoting()
    ),
    VotingMethod.MAJORITY_JUDGMENT: VotingSystem(
        'Majority Judgment', liquidvote.evaluate.cardinal.MajorityJudgment()
    ),
    VotingMethod.QUADRATIC: VotingSystem(
        'Quadratic Voting', liquidvote.evaluate.cardinal.QuadraticVoting()
    ),
    VotingMethod.CONDORCET: VotingSystem(
        'Condorcet Method', liquidvote.evaluate.condorcet.CondorcetWinner()
    ),
    VotingMethod.BORDA: VotingSystem(
        'Borda Count', liquidvote.evaluate.positional.BordaCount()
    ),
    VotingMethod.CUMULATIVE: VotingSystem(
        'Cumulative Voting', liquidvote.evaluate.cardinal.CumulativeVoting()
    ),
    VotingMethod.KEMENY_YOUNG: VotingSystem(
        'Kemeny-Young Method', liquidvote.evaluate.condorcet.KemenyYoung()
    ),
    VotingMethod.DUAL_CHOICE: VotingSystem(
        'Dual Choice', liquidvote.evaluate.DualChoice()
    ),
    VotingMethod.WEIGHT: VotingSystem(
        'Weight Voting', liquidvote.evaluate.WeightVoting()
    ),
}


def get_system(method: Any) -> VotingSystem:
    '''Return the voting system for a method or its name.

    :raises ValueError: If the method is unknown.
    '''
    return SYSTEMS[VotingMethod(method)]


def get_tabulator(method: Any) -> Tabulator:
    return get_system(method).tabulator


def get_available_systems(kind: ChoiceKind) -> Dict[VotingMethod, VotingSystem]:
    '''Return the systems accepting ballots with choices of the given kind.'''
    return {
        method: system for method, system in SYSTEMS.items()
        if system.kind == kind
        or kind in getattr(system.tabulator, 'accepted_kinds', ())
    }


def tabulate(method: Any, ballots: Iterable[Any]) -> TabulationResult:
    '''Tabulate the ballots using the given voting method.

    :param method: A :class:`VotingMethod` or its name.
    :param ballots: Ballots, effective votes (counted with their effective
        weight) or ``(choice, weight)`` pairs. A mapping of effective votes
        keyed by holder is accepted as well.
    :raises ValueError: If the method is unknown.
    '''
    system = get_system(method)
    if hasattr(ballots, 'values'):
        ballots = ballots.values()
    ballots = list(ballots)
    logger.info('tabulating %d ballots by %s', len(ballots), system.name)
    return system.tabulate(ballots)


def tally(method: Any,
          proposal_id: str,
          direct_votes: Mapping[str, DirectVote],
          delegations_by_delegator: DelegationIndex,
          topic_id: Optional[str] = None,
          pending: Optional[Mapping[str, Any]] = None,
          resolver: Optional[liquidvote.resolve.DelegationResolver] = None,
          ) -> TabulationResult:
    '''Resolve the delegations for a proposal and tabulate the result.

    See :func:`liquidvote.resolve.collect_effective_votes` for the
    parameters other than the method.
    '''
    effective = liquidvote.resolve.collect_effective_votes(
        proposal_id, direct_votes, delegations_by_delegator,
        topic_id=topic_id, pending=pending, resolver=resolver,
    )
    return tabulate(method, effective)
