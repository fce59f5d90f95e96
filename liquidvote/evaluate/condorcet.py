'''Condorcet tabulators working with pairwise preferences over ranked ballots.

A Condorcet winner is an option that beats every other option in pairwise
comparison, i.e. more ballots rank it above the other option than the other
way round. Such an option does not always exist; the methods here differ in
what they do when it does not.
'''

import dataclasses
import logging
from typing import Any, List, Dict
from numbers import Number

from liquidvote.vote import Ballot, ChoiceKind
from liquidvote.evaluate.core import (
    Tabulator, TabulationResult, collect_options, count_weight, first_max
)
from liquidvote.component import pairwise
from liquidvote.persist import simple_serialization

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PairwiseResult(TabulationResult):
    '''A result carrying the pairwise preference counts.

    :param pairwise: Numbers of ballots preferring the outer key option to
        the inner key option.
    '''
    pairwise: Dict[str, Dict[str, Number]] = dataclasses.field(
        default_factory=dict
    )


@simple_serialization
class CondorcetWinner(Tabulator):
    '''Select the Condorcet winner, if there is one.

    Each ballot counts once. The scores are the numbers of pairwise wins of
    each option. If no option beats all others, there is no winner.
    '''
    kind = ChoiceKind.RANKED

    def evaluate(self, ballots: List[Ballot]) -> PairwiseResult:
        options = collect_options(ballots)
        matrix = pairwise.preference_matrix(ballots, options, weighted=False)
        wins = {
            option: sum(
                1 for j in range(len(options))
                if j != i and pairwise.beats(matrix, i, j)
            )
            for i, option in enumerate(options)
        }
        winner = None
        for i, option in enumerate(options):
            if wins[option] == len(options) - 1:
                winner = option
                break
        if winner is None and options:
            logger.info('no Condorcet winner among %d options', len(options))
        return PairwiseResult(
            winner=winner,
            scores=wins,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
            pairwise=pairwise.to_nested(matrix, options),
        )


@simple_serialization
class KemenyYoung(Tabulator):
    '''A Kemeny-Young approximation scoring options by summed preferences.

    The score of each option is the total number of pairwise preferences in
    its favor over all other options, and the option with the highest score
    wins. This is a simple heuristic, not the optimal Kemeny ranking, which
    requires evaluating all permutations of the options. It may therefore
    select a different option than true Kemeny-Young would.

    Each ballot counts once.
    '''
    kind = ChoiceKind.RANKED

    def evaluate(self, ballots: List[Ballot]) -> PairwiseResult:
        options = collect_options(ballots)
        matrix = pairwise.preference_matrix(ballots, options, weighted=False)
        scores = pairwise.row_sums(matrix, options)
        return PairwiseResult(
            winner=first_max(scores),
            scores=scores,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
            pairwise=pairwise.to_nested(matrix, options),
        )


@dataclasses.dataclass
class SchulzeResult(TabulationResult):
    '''A result of the Schulze method.

    The scores are the numbers of other options each option beats by
    the strongest path strength.

    :param pairwise_preferences: Weighted numbers of ballots preferring the
        outer key option to the inner key option.
    :param strongest_paths: Strengths of the strongest paths.
    :param ranking: All options, best first.
    :param candidates: The options in the order the matrices were built in.
    '''
    pairwise_preferences: Dict[str, Dict[str, float]] = dataclasses.field(
        default_factory=dict
    )
    strongest_paths: Dict[str, Dict[str, float]] = dataclasses.field(
        default_factory=dict
    )
    ranking: List[str] = dataclasses.field(default_factory=list)
    candidates: List[str] = dataclasses.field(default_factory=list)

    def pairwise_details(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        '''Return the preference and the strongest path for each pair.'''
        return {
            opt1: {
                opt2: {
                    'preference': pref,
                    'strongest_path': self.strongest_paths[opt1][opt2],
                }
                for opt2, pref in prefs.items()
            }
            for opt1, prefs in self.pairwise_preferences.items()
        }


@simple_serialization
class Schulze(Tabulator):
    '''Schulze (beatpath) method tabulator.

    Computes weighted pairwise preferences, finds the strongest paths between
    all pairs of options, and ranks option A above option B if the strongest
    path from A to B is stronger than the one from B to A. The winner is the
    first option of the ranking.

    The ranking is built by repeatedly taking the first remaining option
    (in order of first mention on the ballots) that no other remaining
    option beats. Options whose strongest paths are equal in both
    directions thus keep their mention order; this is not a canonical
    tiebreak for true cyclic ties.
    '''
    kind = ChoiceKind.RANKED

    def evaluate(self, ballots: List[Ballot]) -> SchulzeResult:
        total_weight = count_weight(ballots)
        if not ballots:
            return SchulzeResult(message='no votes cast')
        options = collect_options(ballots)
        if not options:
            return SchulzeResult(
                total_votes=len(ballots),
                total_weight=total_weight,
                message='no ranked options on any ballot',
            )
        prefs = pairwise.preference_matrix(ballots, options, weighted=True)
        paths = pairwise.strongest_paths(prefs)
        ranking = self.rank(paths, options)
        logger.info('Schulze ranking: %s', ranking)
        path_wins = {
            option: sum(
                1 for j in range(len(options))
                if j != i and pairwise.beats(paths, i, j)
            )
            for i, option in enumerate(options)
        }
        return SchulzeResult(
            winner=ranking[0],
            scores=path_wins,
            total_votes=len(ballots),
            total_weight=total_weight,
            pairwise_preferences=pairwise.to_nested(prefs, options),
            strongest_paths=pairwise.to_nested(paths, options),
            ranking=ranking,
            candidates=options,
        )

    @staticmethod
    def rank(paths: pairwise.Matrix, options: List[str]) -> List[str]:
        '''Order the options by pairwise dominance of the strongest paths.

        An option is never placed after an option it beats. The strongest
        path relation is transitive, so an unbeaten option always remains.
        '''
        remaining = list(range(len(options)))
        order = []
        while remaining:
            best = next(
                (i for i in remaining
                 if not any(pairwise.beats(paths, j, i) for j in remaining)),
                remaining[0]
            )
            order.append(best)
            remaining.remove(best)
        return [options[i] for i in order]
