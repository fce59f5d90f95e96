'''Tabulate the results of votes on proposals.

Each tabulator accepts ballots with one specific variant of choice values
(single, multiple, ranked or rated choices) and excludes ballots with other
variants from its tally. The result is a :class:`core.TabulationResult` or
one of its method-specific subclasses; it always contains the winner (which
might be None) and the totals of the ballots counted.

The modules are organized by the ballot variant and algorithm family:

-   :mod:`core` - first-past-the-post, dual choice and weight voting,
-   :mod:`approval` - approval voting,
-   :mod:`sequential` - two-round majority runoff and instant runoff,
-   :mod:`positional` - Borda count,
-   :mod:`condorcet` - Condorcet winner, Kemeny-Young and Schulze,
-   :mod:`cardinal` - range, STAR, majority judgment, quadratic and
    cumulative voting.

Tabulators never raise for ties, missing majorities or empty electorates;
these are represented in the result.
'''

from liquidvote.evaluate.core import *    # noqa
