'''Tabulators that proceed in rounds.

Two-round majority runoff works over single choice ballots: an option with
a weighted majority wins outright, otherwise the two leading options face
each other in a runoff.

Instant runoff works over ranked ballots, repeatedly eliminating the option
with the fewest first preferences among the remaining options until one
option gains a majority of ballots.
'''

import dataclasses
import logging
from typing import List, Dict, Optional

from liquidvote.vote import Ballot, ChoiceKind, is_rank
from liquidvote.evaluate.core import (
    Tabulator, TabulationResult, collect_options, count_weight, sorted_desc,
    tally_single,
)
from liquidvote.persist import simple_serialization

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class MajorityRunoffResult(TabulationResult):
    '''A result of two-round majority runoff.

    The `scores` are the first round counts and `total_weight` is their sum.
    '''
    majority_achieved: bool = False
    runoff_needed: bool = False
    round: int = 1
    runoff_scores: Dict[str, float] = dataclasses.field(default_factory=dict)
    total_weight_runoff: float = 0.0


@simple_serialization
class MajorityRunoff(Tabulator):
    '''Two-round system with a runoff between the top two options.

    If the leading option gets more than half of the total weight in the
    first round, it wins. Otherwise, the ballots for the two leading options
    are counted again in a runoff; if these are tied, the first round leader
    wins.
    '''
    kind = ChoiceKind.SINGLE

    def evaluate(self, ballots: List[Ballot]) -> MajorityRunoffResult:
        counts = tally_single(ballots)
        total = sum(counts.values())
        if total == 0:
            return MajorityRunoffResult(
                scores=counts,
                total_votes=len(ballots),
                message='no weighted votes cast',
            )
        ordered = sorted_desc(counts)
        leader, leader_count = ordered[0]
        if leader_count > total / 2:
            logger.info('%s wins with a majority of %s out of %s',
                        leader, leader_count, total)
            return MajorityRunoffResult(
                winner=leader,
                scores=counts,
                total_votes=len(ballots),
                total_weight=total,
                majority_achieved=True,
            )
        if len(ordered) < 2:
            return MajorityRunoffResult(
                winner=leader,
                scores=counts,
                total_votes=len(ballots),
                total_weight=total,
                message='only one option voted for, no runoff possible',
            )
        first, second = ordered[0][0], ordered[1][0]
        logger.info('no majority in the first round, runoff between %s and %s',
                    first, second)
        runoff = {first: 0.0, second: 0.0}
        runoff_total = 0.0
        for ballot in ballots:
            if ballot.choice.option in runoff:
                runoff[ballot.choice.option] += ballot.weight
                runoff_total += ballot.weight
        winner = first if runoff[first] >= runoff[second] else second
        return MajorityRunoffResult(
            winner=winner,
            scores=counts,
            total_votes=len(ballots),
            total_weight=total,
            runoff_needed=True,
            round=2,
            runoff_scores=runoff,
            total_weight_runoff=runoff_total,
        )


@dataclasses.dataclass
class InstantRunoffResult(TabulationResult):
    '''A result of instant runoff voting.

    :param rounds: First preference counts of the remaining options for each
        round.
    :param eliminated: Options in order of elimination.
    '''
    rounds: List[Dict[str, int]] = dataclasses.field(default_factory=list)
    eliminated: List[str] = dataclasses.field(default_factory=list)

    def percentages(self) -> List[Dict[str, str]]:
        '''Return the round counts as percentages of all ballots.'''
        return [
            {option: format_share(votes, self.total_votes)
             for option, votes in round_counts.items()}
            for round_counts in self.rounds
        ]


def format_share(count: float, total: float) -> str:
    if not total:
        return '0.0%'
    return f'{count / total * 100:.1f}%'


@simple_serialization
class InstantRunoff(Tabulator):
    '''Instant runoff voting (alternative vote) tabulator.

    Each ballot counts once (unweighted) for its best ranked remaining
    option; only positive integer ranks are considered. An option with more
    than half of all ballots wins. Otherwise the option with the fewest
    first preferences is eliminated (the first such option on ties) and
    the counting is repeated. The last remaining option wins if no majority
    is ever reached.
    '''
    kind = ChoiceKind.RANKED

    def evaluate(self, ballots: List[Ballot]) -> InstantRunoffResult:
        remaining = collect_options(ballots)
        n_ballots = len(ballots)
        rounds = []
        eliminated = []
        winner = None
        while remaining:
            counts = self._first_preferences(ballots, remaining)
            rounds.append(counts)
            logger.debug('round %d: %s', len(rounds), counts)
            winner = self._majority(counts, n_ballots)
            if winner is not None:
                logger.info('%s wins with a majority in round %d',
                            winner, len(rounds))
                break
            if len(remaining) == 1:
                winner = remaining[0]
                break
            loser = min(counts, key=counts.get)
            logger.info('eliminating %s with %d votes', loser, counts[loser])
            remaining.remove(loser)
            eliminated.append(loser)
            if len(remaining) == 1:
                winner = remaining[0]
                logger.info('%s wins as the last remaining option', winner)
                break
        return InstantRunoffResult(
            winner=winner,
            scores=rounds[-1] if rounds else {},
            total_votes=n_ballots,
            total_weight=count_weight(ballots),
            rounds=rounds,
            eliminated=eliminated,
        )

    @staticmethod
    def _first_preferences(ballots: List[Ballot],
                           remaining: List[str],
                           ) -> Dict[str, int]:
        counts = {option: 0 for option in remaining}
        for ballot in ballots:
            ranks = ballot.choice.ranks
            best = None
            best_rank = None
            for option in remaining:
                rank = ranks.get(option)
                if is_rank(rank) and rank > 0:
                    if best_rank is None or rank < best_rank:
                        best = option
                        best_rank = rank
            if best is not None:
                counts[best] += 1
        return counts

    @staticmethod
    def _majority(counts: Dict[str, int], n_ballots: int) -> Optional[str]:
        for option, count in counts.items():
            if count > n_ballots / 2:
                return option
        return None
