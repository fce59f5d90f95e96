"""Input/output of proposal files.

This subpackage is structured into modules by file format. Currently, the
only format is the JSON proposal file handled by :mod:`proposal`, holding
the direct votes, delegations and pending ballots of a single proposal.
"""
