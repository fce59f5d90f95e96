'''Choice values, ballots and ballot validators.

A ballot carries a choice and a weight. The choice is always one of a closed
set of variants, each used by a different family of voting methods:

-   **Single** choices - a voter picks one option. Represented by
    :class:`SingleChoice`.
-   **Multiple** choices - a voter approves of a number of options equally.
    Represented by :class:`MultipleChoice`; the options keep the order they
    were given in.
-   **Ranked** choices - a voter assigns integer ranks to options, lower
    numbers meaning better ranks. Represented by :class:`RankedChoice`.
-   **Rated** choices - a voter assigns a score to options. The scores are
    numbers for range, STAR, quadratic and cumulative voting, or grade labels
    for majority judgment. Represented by :class:`RatedChoice`.

Every tabulator expects one specific variant. Ballot validators check the
variant and its contents and raise a subclass of :class:`VoteError` if the
ballot is not acceptable; the tabulators catch these errors and exclude
the offending ballot from their tally rather than failing as a whole.
'''

import abc
import collections.abc
import dataclasses
import enum
from typing import Any, Tuple, Dict, Union, Optional
from numbers import Number

from liquidvote.persist import simple_serialization


class VoteError(Exception, metaclass=abc.ABCMeta):
    '''A ballot is invalid given the voting method rules.'''
    pass


class VoteTypeError(VoteError):
    '''A ballot carries a choice of an invalid variant.

    E.g. ranked choices in place of single choices.

    :param vtype: Choice type detected as invalid.
    :param expected: Choice type that was expected.
    '''
    def __init__(self, vtype: type, expected: type = None):
        self.vtype = vtype
        self.expected = expected
        message = f'invalid choice type: {vtype}'
        if expected:
            message += f', must be {expected}'
        super().__init__(message)


class VoteMagnitudeError(VoteError):
    '''A ballot weight or count is too small or too large.

    :param value: The value that was found to be invalid.
    :param min_value: Minimum value permissible in the context.
    :param max_value: Maximum value permissible in the context.
    :param value_name: Role of the value (e.g. weight, number of options).
    '''
    def __init__(self,
                 value: Number,
                 min_value: Optional[Number] = None,
                 max_value: Optional[Number] = None,
                 value_name: str = 'count',
                 ):
        self.value = value
        self.min_value = min_value
        self.max_value = max_value
        message = f'invalid ballot {value_name}: {value}'
        parts = []
        if min_value is not None:
            parts.append(f'>={min_value}')
        if max_value is not None:
            parts.append(f'<={max_value}')
        if parts:
            message += ', must be ' + ', '.join(parts)
        super().__init__(message)


class VoteValueError(VoteError):
    '''An explicitly given rank or rating is invalid.

    :param value: The rank or rating that is invalid.
    :param option: The option that the value was given for. If None, a
        specific option could not be pinpointed.
    :param allowed: A spectrum of values that is allowed at the given point.
    '''
    def __init__(self,
                 value: Any,
                 option: Optional[str] = None,
                 allowed: Any = None,
                 ):
        self.value = value
        self.option = option
        self.allowed = allowed
        message = f'invalid choice value: {value!r}'
        if option is not None:
            message += f' for option {option}'
        if allowed is not None:
            message += f', allowed: {allowed}'
        super().__init__(message)


class ChoiceKind(enum.Enum):
    '''The variant of a choice value, as expected by a voting method.'''
    SINGLE = 'single'
    MULTIPLE = 'multiple'
    RANKED = 'ranked'
    RATED = 'rated'


@dataclasses.dataclass(frozen=True)
class SingleChoice:
    '''A vote for a single option.'''
    option: str

    kind = ChoiceKind.SINGLE

    def options(self) -> Tuple[str, ...]:
        return (self.option, )

    def to_raw(self) -> str:
        return self.option


@dataclasses.dataclass(frozen=True)
class MultipleChoice:
    '''A vote for a number of options with equal support (approval).

    Duplicate options are dropped; the order of first mention is retained.
    '''
    selected: Tuple[str, ...]

    kind = ChoiceKind.MULTIPLE

    def __post_init__(self):
        object.__setattr__(self, 'selected', tuple(dict.fromkeys(self.selected)))

    def options(self) -> Tuple[str, ...]:
        return self.selected

    def to_raw(self) -> list:
        return list(self.selected)


@dataclasses.dataclass(frozen=True)
class RankedChoice:
    '''A ranking of options; rank 1 is the best.

    :param ranks: A mapping of options to their integer ranks.
    '''
    ranks: Dict[str, int]

    kind = ChoiceKind.RANKED

    def __post_init__(self):
        object.__setattr__(self, 'ranks', dict(self.ranks))

    def options(self) -> Tuple[str, ...]:
        return tuple(self.ranks.keys())

    def to_raw(self) -> Dict[str, int]:
        return dict(self.ranks)


@dataclasses.dataclass(frozen=True)
class RatedChoice:
    '''A rating of options - numeric scores or grade labels.

    :param ratings: A mapping of options to their scores.
    '''
    ratings: Dict[str, Any]

    kind = ChoiceKind.RATED

    def __post_init__(self):
        object.__setattr__(self, 'ratings', dict(self.ratings))

    def options(self) -> Tuple[str, ...]:
        return tuple(self.ratings.keys())

    def to_raw(self) -> Dict[str, Any]:
        return dict(self.ratings)


ChoiceValue = Union[SingleChoice, MultipleChoice, RankedChoice, RatedChoice]

CHOICE_TYPES: Dict[ChoiceKind, type] = {
    ChoiceKind.SINGLE: SingleChoice,
    ChoiceKind.MULTIPLE: MultipleChoice,
    ChoiceKind.RANKED: RankedChoice,
    ChoiceKind.RATED: RatedChoice,
}


def is_rank(value: Any) -> bool:
    '''Return True if the value can serve as a rank (a non-boolean integer).'''
    return isinstance(value, int) and not isinstance(value, bool)


def is_score(value: Any) -> bool:
    '''Return True if the value can serve as a numeric score.'''
    return isinstance(value, Number) and not isinstance(value, bool)


def coerce_choice(value: Any, kind: Optional[ChoiceKind] = None) -> ChoiceValue:
    '''Convert a raw JSON-like value into a choice value.

    Strings become single choices, lists and sets become multiple choices,
    mappings become rated choices unless a ranked choice is requested by
    `kind`. Values that are already choice values are returned unchanged.

    :param value: The raw choice.
    :param kind: The choice variant the voting method expects; only used
        to disambiguate mappings.
    :raises VoteTypeError: If the value cannot be interpreted as a choice.
    '''
    if isinstance(value, tuple(CHOICE_TYPES.values())):
        return value
    elif isinstance(value, str):
        return SingleChoice(value)
    elif isinstance(value, dict):
        if kind == ChoiceKind.RANKED:
            return RankedChoice(value)
        else:
            return RatedChoice(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        return MultipleChoice(tuple(value))
    else:
        raise VoteTypeError(type(value))


@dataclasses.dataclass(frozen=True)
class Ballot:
    '''A weighted choice as consumed by the tabulators.'''
    choice: ChoiceValue
    weight: float = 1.0


@dataclasses.dataclass(frozen=True)
class DirectVote:
    '''A ballot cast by a voter themselves, not via delegation.'''
    voter_id: str
    proposal_id: str
    choice: ChoiceValue
    weight: float = 1.0
    topic_id: Optional[str] = None


def as_ballot(item: Any) -> Ballot:
    '''Turn a ballot-like object into a :class:`Ballot`.

    Accepts ballots, effective votes (their effective weight is used), direct
    votes, ``(choice, weight)`` pairs and mappings with a ``choice`` key and
    an optional ``weight`` key (1 by default).

    :raises VoteTypeError: If the item is none of these.
    '''
    if isinstance(item, Ballot):
        return item
    elif hasattr(item, 'effective_weight'):
        return Ballot(item.choice, item.effective_weight)
    elif isinstance(item, DirectVote):
        return Ballot(item.choice, item.weight)
    elif isinstance(item, collections.abc.Mapping):
        if 'choice' not in item:
            raise VoteTypeError(type(item))
        return Ballot(item['choice'], item.get('weight', 1.0))
    try:
        choice, weight = item
    except (TypeError, ValueError) as err:
        raise VoteTypeError(type(item)) from err
    return Ballot(choice, weight)


class BallotValidator(metaclass=abc.ABCMeta):
    '''Validate that a single ballot is acceptable for a voting method.

    Base class, not intended for direct use.
    '''
    kind: ChoiceKind = NotImplemented

    def validate(self, ballot: Ballot) -> None:
        '''Check the ballot weight and choice variant, then its contents.

        :raises VoteMagnitudeError: If the weight is negative.
        :raises VoteTypeError: If the choice is of the wrong variant.
        '''
        if not is_score(ballot.weight) or ballot.weight < 0:
            raise VoteMagnitudeError(ballot.weight, 0, None, 'weight')
        expected = CHOICE_TYPES[self.kind]
        if not isinstance(ballot.choice, expected):
            raise VoteTypeError(type(ballot.choice), expected)
        self.validate_choice(ballot.choice)

    @abc.abstractmethod
    def validate_choice(self, choice: ChoiceValue) -> None:
        raise NotImplementedError


@simple_serialization
class SingleChoiceValidator(BallotValidator):
    '''Validate a single choice ballot - the option must be a string.'''
    kind = ChoiceKind.SINGLE

    def validate_choice(self, choice: SingleChoice) -> None:
        if not isinstance(choice.option, str):
            raise VoteValueError(choice.option)


@simple_serialization
class MultipleChoiceValidator(BallotValidator):
    '''Validate an approval ballot.

    Only checks the variant; non-string options are skipped by the
    tabulators individually.
    '''
    kind = ChoiceKind.MULTIPLE

    def validate_choice(self, choice: MultipleChoice) -> None:
        pass


@simple_serialization
class RankedChoiceValidator(BallotValidator):
    '''Validate a ranked ballot.

    Only checks the variant; entries without a positive integer rank are
    skipped by the tabulators individually.
    '''
    kind = ChoiceKind.RANKED

    def validate_choice(self, choice: RankedChoice) -> None:
        pass


@simple_serialization
class RatedChoiceValidator(BallotValidator):
    '''Validate a rated ballot.

    Only checks the variant; ratings of an unexpected kind (non-numeric
    scores, grades outside the scale) are skipped by the tabulators
    individually.
    '''
    kind = ChoiceKind.RATED

    def validate_choice(self, choice: RatedChoice) -> None:
        pass


VALIDATORS: Dict[ChoiceKind, BallotValidator] = {
    ChoiceKind.SINGLE: SingleChoiceValidator(),
    ChoiceKind.MULTIPLE: MultipleChoiceValidator(),
    ChoiceKind.RANKED: RankedChoiceValidator(),
    ChoiceKind.RATED: RatedChoiceValidator(),
}
