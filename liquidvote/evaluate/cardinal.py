'''Cardinal tabulators working with rated ballots.

The voters rate the options, either with numbers (range, STAR, quadratic
and cumulative voting) or with grades from an ordinal scale (majority
judgment). Individual ratings that are not of the expected kind are skipped;
the rest of the ballot still counts.

All these tabulators count each ballot once regardless of its weight.
'''

import collections
import dataclasses
import logging
from typing import Any, List, Dict, Optional, Sequence

from liquidvote.vote import Ballot, ChoiceKind, is_rank, is_score
from liquidvote.evaluate.core import (
    Tabulator, TabulationResult, collect_options, count_weight, first_max,
    sorted_desc,
)
from liquidvote.persist import simple_serialization

logger = logging.getLogger(__name__)


DEFAULT_GRADE_SCALE = (
    'Excellent', 'Very Good', 'Good', 'Acceptable', 'Poor', 'Reject'
)


@simple_serialization
class RangeVoting(Tabulator):
    '''Range (score) voting - the highest average rating wins.

    The average of each option is taken over the ballots that rated it;
    options that got no numeric rating at all average zero.
    '''
    kind = ChoiceKind.RATED

    def evaluate(self, ballots: List[Ballot]) -> TabulationResult:
        ratings = collections.OrderedDict(
            (option, []) for option in collect_options(ballots)
        )
        for ballot in ballots:
            for option, rating in ballot.choice.ratings.items():
                if is_score(rating):
                    ratings[option].append(rating)
        averages = {
            option: (sum(values) / len(values) if values else 0.0)
            for option, values in ratings.items()
        }
        return TabulationResult(
            winner=first_max(averages),
            scores=averages,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
        )


@dataclasses.dataclass
class StarResult(TabulationResult):
    '''A result of STAR voting.

    :param finalists: The two options with the highest score sums.
    :param runoff_results: Numbers of ballots preferring each finalist.
    '''
    finalists: List[str] = dataclasses.field(default_factory=list)
    runoff_results: Dict[str, int] = dataclasses.field(default_factory=dict)


@simple_serialization
class StarVoting(Tabulator):
    '''STAR (score then automatic runoff) voting.

    The two options with the highest rating sums advance to an automatic
    runoff, in which each ballot gives a point to the finalist it rated
    strictly higher (a missing rating counting as zero). The finalist with
    more points wins; on a tie, the first finalist does.
    '''
    kind = ChoiceKind.RATED

    def evaluate(self, ballots: List[Ballot]) -> StarResult:
        sums = {option: 0.0 for option in collect_options(ballots)}
        for ballot in ballots:
            for option, rating in ballot.choice.ratings.items():
                if is_score(rating):
                    sums[option] += rating
        totals = dict(total_votes=len(ballots),
                      total_weight=count_weight(ballots))
        ordered = sorted_desc(sums)
        if len(ordered) < 2:
            return StarResult(
                winner=(ordered[0][0] if ordered else None),
                scores=sums,
                finalists=[opt for opt, score in ordered],
                **totals
            )
        first, second = ordered[0][0], ordered[1][0]
        prefer_first = 0
        prefer_second = 0
        for ballot in ballots:
            rating_first = self._rating(ballot, first)
            rating_second = self._rating(ballot, second)
            if rating_first > rating_second:
                prefer_first += 1
            elif rating_second > rating_first:
                prefer_second += 1
        logger.info('STAR runoff %s (%d) vs %s (%d)',
                    first, prefer_first, second, prefer_second)
        return StarResult(
            winner=(first if prefer_first >= prefer_second else second),
            scores=sums,
            finalists=[first, second],
            runoff_results={first: prefer_first, second: prefer_second},
            **totals
        )

    @staticmethod
    def _rating(ballot: Ballot, option: str) -> Any:
        rating = ballot.choice.ratings.get(option)
        return rating if is_score(rating) else 0.0


@dataclasses.dataclass
class MajorityJudgmentResult(TabulationResult):
    '''A result of majority judgment; the scores are median grades.'''
    scale: List[str] = dataclasses.field(default_factory=list)


@simple_serialization
class MajorityJudgment(Tabulator):
    '''Majority judgment - the option with the best median grade wins.

    Grades are sorted from best to worst and the median is the grade at the
    middle position (the lower middle for an even number of grades). Options
    with no grades get the worst grade of the scale. Of options with equal
    medians, the first one wins; no further tiebreaking is performed.

    :param scale: Grade labels ordered from the best to the worst. Grades
        outside the scale are ignored.
    '''
    kind = ChoiceKind.RATED

    def __init__(self, scale: Sequence[str] = DEFAULT_GRADE_SCALE):
        self.scale = tuple(scale)

    def evaluate(self, ballots: List[Ballot]) -> MajorityJudgmentResult:
        positions = {grade: i for i, grade in enumerate(self.scale)}
        grades = collections.OrderedDict(
            (option, []) for option in collect_options(ballots)
        )
        for ballot in ballots:
            for option, grade in ballot.choice.ratings.items():
                if grade in positions:
                    grades[option].append(positions[grade])
                else:
                    logger.debug('ignoring grade %r for %s', grade, option)
        medians = {
            option: self.scale[self.median(values, len(self.scale) - 1)]
            for option, values in grades.items()
        }
        winner = None
        best = len(self.scale)
        for option, grade in medians.items():
            if positions[grade] < best:
                best = positions[grade]
                winner = option
        return MajorityJudgmentResult(
            winner=winner,
            scores=medians,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
            scale=list(self.scale),
        )

    @staticmethod
    def median(positions: List[int], default: Optional[int] = None) -> int:
        if not positions:
            return default
        return sorted(positions)[len(positions) // 2]


class VoteAllocation(Tabulator):
    '''Sum integer vote allocations per option; the highest sum wins.

    Ratings that are not integers are skipped. Base class for quadratic and
    cumulative voting, which differ only in the budget constraints imposed
    on voters, which are not checked here.
    '''
    kind = ChoiceKind.RATED

    def evaluate(self, ballots: List[Ballot]) -> TabulationResult:
        totals = {option: 0 for option in collect_options(ballots)}
        for ballot in ballots:
            for option, votes in ballot.choice.ratings.items():
                if is_rank(votes):
                    totals[option] += votes
        return TabulationResult(
            winner=first_max(totals),
            scores=totals,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
        )


@simple_serialization
class QuadraticVoting(VoteAllocation):
    '''Quadratic voting; casting n votes for an option costs n squared.'''
    pass


@simple_serialization
class CumulativeVoting(VoteAllocation):
    '''Cumulative voting; a fixed number of votes spread across options.'''
    pass
