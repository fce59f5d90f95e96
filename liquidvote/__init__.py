"""Liquidvote - a vote resolution engine for liquid democracy.

Liquidvote resolves who ultimately casts each vote on a proposal when voters
may delegate their influence to others, and tabulates the resulting weighted
ballots under one of a fixed set of voting methods.

A vote count usually proceeds as follows:

-   The direct votes and delegations for a proposal are collected by the
    caller. The ``vote`` module provides the ballot and choice types, the
    ``delegation`` module the delegation records and graph queries.
-   The ballots are propagated through the delegation graph by the resolver
    in the ``resolve`` module, giving one effective vote per final holder.
-   The effective votes are tabulated by a tabulator from the ``evaluate``
    subpackage. The :mod:`system` module wraps the tabulators into the closed
    enumeration of voting methods and provides the :func:`system.tabulate`
    entry point.

Both resolution and tabulation are pure computations over their inputs.
"""
