"""A commandline tool for quick counting of proposal votes.

Loads a JSON proposal file, resolves the delegations, and tabulates the
effective votes by the proposal's voting method or any other methods
accepting the same kind of ballots.
"""

import argparse
import datetime
import io
import json
import logging
import sys
import warnings
from typing import Optional, List, Dict

import liquidvote.io.proposal
from liquidvote.delegation import index_by_delegator
from liquidvote.evaluate.core import TabulationResult
from liquidvote.io.core import ParseError, ProposalSetup
from liquidvote.persist import to_dict
from liquidvote.resolve import (
    EffectiveVote, DelegationResolver, collect_effective_votes
)
from liquidvote.system import (
    VotingMethod, VotingSystem, SYSTEMS, get_available_systems
)

argparser = argparse.ArgumentParser(
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the proposal from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the proposal from standard input',
)
argparser.add_argument(
    '-m', '--method',
    help='voting method to use (overrides the one given in the proposal file)',
)
argparser.add_argument(
    '-a', '--all-methods',
    action='store_true',
    help='tabulate by all methods accepting the kind of ballots given',
)
argparser.add_argument(
    '-j', '--json',
    dest='as_json',
    action='store_true',
    help='print the effective votes and results as JSON',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all resolver and tabulator log messages',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any resolver or tabulator log messages',
)


def main(input_file: io.TextIOBase,
         use_stdin: bool = False,
         method: Optional[str] = None,
         all_methods: bool = False,
         as_json: bool = False,
         verbose: bool = False,
         quiet: bool = False,
         ) -> None:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    setup = liquidvote.io.proposal.load(
        input_file,
        method=(VotingMethod(method) if method else None),
    )
    if not setup.direct_votes and not setup.pending:
        warnings.warn('no votes in the proposal: nothing to count, terminating')
        return
    effective = resolve_proposal(setup)
    use_systems = gather_systems(setup, all_methods)
    if not use_systems:
        warnings.warn('no voting method selected, terminating')
        return
    results = {
        voting_method: system.tabulate(effective.values())
        for voting_method, system in use_systems.items()
    }
    if as_json:
        print_json(effective, results)
    else:
        show_effective_votes(effective)
        for voting_method, result in results.items():
            show_result(use_systems[voting_method], result)


def resolve_proposal(setup: ProposalSetup) -> Dict[str, EffectiveVote]:
    """Resolve the delegations of a loaded proposal."""
    by_delegator = index_by_delegator(
        setup.delegations,
        at=datetime.datetime.now(datetime.timezone.utc),
    )
    return collect_effective_votes(
        setup.proposal_id,
        setup.direct_votes,
        by_delegator,
        topic_id=setup.topic_id,
        pending=setup.pending,
        resolver=DelegationResolver(),
    )


def gather_systems(setup: ProposalSetup,
                   all_methods: bool = False,
                   ) -> Dict[VotingMethod, VotingSystem]:
    """Select the voting systems to tabulate the proposal by."""
    if not all_methods:
        if setup.method is None:
            raise ValueError('no voting method in the proposal file, use -m'
                             ' to select one or -a to use all applicable')
        return {setup.method: SYSTEMS[setup.method]}
    first = next(iter(
        list(setup.direct_votes.values()) + list(setup.pending.values())
    ))
    return get_available_systems(first.choice.kind)


def show_effective_votes(effective: Dict[str, EffectiveVote]) -> None:
    print(f'{len(effective)} effective votes after resolving delegations:')
    for holder_id, vote in effective.items():
        route = ' -> '.join(vote.path)
        origin = 'direct' if vote.is_direct else f'from {vote.original_voter_id}'
        print(f'    {holder_id:<16} {vote.effective_weight:>8.4g}'
              f'  {origin} ({route})')


def show_result(system: VotingSystem, result: TabulationResult) -> None:
    """Show the result of a single tabulation."""
    print()
    print(f'{system.name}: {result.total_votes} ballots,'
          f' total weight {result.total_weight:.4g}')
    if result.scores:
        n_just_chars = len(max((str(opt) for opt in result.scores), key=len))
        for option, score in result.scores.items():
            print('   ', str(option).ljust(n_just_chars), ' ', _show_score(score))
    if result.winner is None:
        print('No winner' + (f': {result.message}' if result.message else ''))
    else:
        print(f'Winner: {result.winner}')


def _show_score(score) -> str:
    if isinstance(score, float):
        return f'{score:.4g}'
    return str(score)


def print_json(effective: Dict[str, EffectiveVote],
               results: Dict[VotingMethod, TabulationResult],
               ) -> None:
    print(json.dumps({
        'effective_votes': to_dict(effective),
        'results': {
            method.value: to_dict(result)
            for method, result in results.items()
        },
    }, indent=2))


def run(argv: Optional[List[str]] = None) -> int:
    args = argparser.parse_args(argv)
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
        return 2
    try:
        main(**vars(args))
    except (ValueError, ParseError) as err:
        print(f'error: {err}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(run())
