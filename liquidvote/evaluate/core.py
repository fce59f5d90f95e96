'''General tabulation machinery and the simple weighted counting methods.

Every tabulator takes a list of ballots (or ballot-like objects such as
effective votes) and produces a :class:`TabulationResult`. Before counting,
ballots whose choice is not of the variant the method expects are excluded
from the tally; this never makes the whole tabulation fail.

Winners are selected by strict comparison while iterating over the options
in the order they were first seen across the ballots, so the first of several
maximal options wins a tie.
'''

import abc
import collections
import dataclasses
import logging
from typing import Any, List, Dict, Optional, Iterable, Tuple
from numbers import Number

from liquidvote.vote import (
    Ballot, ChoiceKind, VoteError, VoteTypeError, VALIDATORS,
    as_ballot, coerce_choice,
)
from liquidvote.persist import simple_serialization

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class TabulationResult:
    '''A result of a tabulation.

    :param winner: The winning option; None if there is none (no ballots,
        no majority or no Condorcet winner, depending on the method).
    :param scores: The per-option figure the winner was selected by (weighted
        counts, points, average ratings, median grades...).
    :param total_votes: Number of ballots counted.
    :param total_weight: Sum of weights of the ballots counted.
    :param message: An explanation for degenerate outcomes.
    '''
    winner: Optional[str] = None
    scores: Dict[str, Any] = dataclasses.field(default_factory=dict)
    total_votes: int = 0
    total_weight: float = 0.0
    message: Optional[str] = None


@dataclasses.dataclass
class WeightVotingResult(TabulationResult):
    distinct_voters: int = 0


class Tabulator(metaclass=abc.ABCMeta):
    '''An abstract base class for tabulators.

    Subclasses define the choice variant they accept as `kind` and implement
    :meth:`evaluate` over the ballots that passed validation.
    '''
    kind: ChoiceKind = NotImplemented

    def tabulate(self, ballots: Iterable[Any]) -> TabulationResult:
        '''Tabulate the ballots.

        :param ballots: Ballots, effective votes or ``(choice, weight)``
            pairs. Raw choices (strings, lists, mappings) are converted to
            the choice variant the method expects.
        '''
        return self.evaluate(self.accept(ballots))

    def accept(self, ballots: Iterable[Any]) -> List[Ballot]:
        '''Return the ballots acceptable for the method, excluding others.'''
        accepted = []
        for item in ballots:
            try:
                accepted.append(self.validate(as_ballot(item)))
            except VoteError as err:
                logger.debug('%s: excluding ballot %r: %s',
                             self.__class__.__name__, item, err)
        return accepted

    def validate(self, ballot: Ballot) -> Ballot:
        '''Coerce the ballot's choice to the accepted variant and validate it.

        :raises VoteError: If the ballot is not acceptable.
        '''
        ballot = Ballot(coerce_choice(ballot.choice, self.kind), ballot.weight)
        VALIDATORS[self.kind].validate(ballot)
        return ballot

    @abc.abstractmethod
    def evaluate(self, ballots: List[Ballot]) -> TabulationResult:
        raise NotImplementedError


def first_max(scores: Dict[str, Number],
              floor: Number = -1,
              ) -> Optional[str]:
    '''Return the first option with a maximal score exceeding floor.

    :param scores: Option scores in their iteration order.
    :param floor: The value a score must strictly exceed to win at all.
    '''
    winner = None
    best = floor
    for option, score in scores.items():
        if score > best:
            best = score
            winner = option
    return winner


def sorted_desc(scores: Dict[str, Number]) -> List[Tuple[str, Number]]:
    '''Sort the scores descending; equal scores keep their mutual order.'''
    return sorted(scores.items(), key=lambda item: item[1], reverse=True)


def collect_options(ballots: Iterable[Ballot]) -> List[str]:
    '''List all options mentioned by the ballots in order of first mention.'''
    options = collections.OrderedDict()
    for ballot in ballots:
        for option in ballot.choice.options():
            options[option] = None
    return list(options.keys())


def count_weight(ballots: Iterable[Ballot]) -> float:
    return sum(ballot.weight for ballot in ballots)


def tally_single(ballots: Iterable[Ballot]) -> Dict[str, float]:
    '''Sum the weights of single choice ballots per option.'''
    counts = collections.OrderedDict()
    for ballot in ballots:
        option = ballot.choice.option
        counts[option] = counts.get(option, 0.0) + ballot.weight
    return dict(counts)


def tally_multiple(ballots: Iterable[Ballot]) -> Dict[str, float]:
    '''Give the full ballot weight to every option selected on a ballot.'''
    counts = collections.OrderedDict()
    for ballot in ballots:
        for option in ballot.choice.options():
            if isinstance(option, str):
                counts[option] = counts.get(option, 0.0) + ballot.weight
    return dict(counts)


@simple_serialization
class Plurality(Tabulator):
    '''First-past-the-post (simple plurality) tabulator.

    Sums the weights of the ballots for each option; the option with the
    highest sum wins. An option with zero total weight can still win if no
    other option was voted for.
    '''
    kind = ChoiceKind.SINGLE

    def evaluate(self, ballots: List[Ballot]) -> TabulationResult:
        counts = tally_single(ballots)
        return TabulationResult(
            winner=first_max(counts),
            scores=counts,
            total_votes=len(ballots),
            total_weight=count_weight(ballots),
        )


@simple_serialization
class DualChoice(Plurality):
    '''Binary choice (yes/no) tabulator, counted as first-past-the-post.'''
    pass


@simple_serialization
class WeightVoting(Tabulator):
    '''Weighted voting with single or multiple choices.

    Single choices are counted as in first-past-the-post, multiple choices as
    in approval voting. The result reports the total weight of the counted
    ballots (each ballot counted once regardless of the number of options it
    selected) and the number of distinct voters.
    '''
    kind = ChoiceKind.SINGLE
    accepted_kinds = (ChoiceKind.SINGLE, ChoiceKind.MULTIPLE)

    def validate(self, ballot: Ballot) -> Ballot:
        choice = coerce_choice(ballot.choice)
        if choice.kind not in self.accepted_kinds:
            raise VoteTypeError(type(choice))
        ballot = Ballot(choice, ballot.weight)
        VALIDATORS[choice.kind].validate(ballot)
        return ballot

    def evaluate(self, ballots: List[Ballot]) -> WeightVotingResult:
        counts = collections.OrderedDict()
        total_weight = 0.0
        for ballot in ballots:
            counted = False
            for option in ballot.choice.options():
                if isinstance(option, str):
                    counts[option] = counts.get(option, 0.0) + ballot.weight
                    counted = True
            if counted:
                total_weight += ballot.weight
        counts = dict(counts)
        message = None
        if not ballots:
            message = 'no weighted votes cast'
        elif not counts:
            message = 'no valid choices found'
        return WeightVotingResult(
            winner=first_max(counts),
            scores=counts,
            total_votes=len(ballots),
            total_weight=total_weight,
            message=message,
            distinct_voters=len(ballots),
        )
