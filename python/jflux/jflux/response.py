# Copyright (c) 2025 by Terry Greeniaus.
# All rights reserved.
import dataclasses
import typing

from .exceptions import QueryExecutionError


@dataclasses.dataclass
class Series:
    '''
    The rows returned for one measurement and tag set.  Each row in values is
    a list aligned with columns.  For GROUP BY queries the grouped tags are
    reported once per series in tags rather than as columns.
    '''
    name:    typing.Optional[str]
    columns: typing.List[str]
    values:  typing.List[list]      = dataclasses.field(default_factory=list)
    tags:    typing.Dict[str, str]  = dataclasses.field(default_factory=dict)
    error:   typing.Optional[str]   = None

    def __len__(self):
        return len(self.values)

    def rows(self):
        '''
        Yields each row as a dict of column name to value.
        '''
        for row in self.values:
            yield dict(zip(self.columns, row))

    @staticmethod
    def from_json(d):
        return Series(name=d.get('name'),
                      columns=list(d.get('columns') or []),
                      values=[list(r) for r in d.get('values') or []],
                      tags=dict(d.get('tags') or {}),
                      error=d.get('error'))


@dataclasses.dataclass
class QueryResult:
    '''
    The result of one statement.  A query with several statements returns one
    QueryResult per statement, told apart by statement_id.
    '''
    statement_id: int                   = 0
    series:       typing.List[Series]   = dataclasses.field(default_factory=list)
    error:        typing.Optional[str]  = None

    def raise_for_error(self):
        if self.error is not None:
            raise QueryExecutionError(self.error, self.statement_id)
        for s in self.series:
            if s.error is not None:
                raise QueryExecutionError(s.error, self.statement_id)

    @staticmethod
    def from_json(d):
        return QueryResult(statement_id=d.get('statement_id', 0),
                           series=[Series.from_json(s)
                                   for s in d.get('series') or []],
                           error=d.get('error'))


def parse_response(payload):
    '''
    Parses the decoded JSON body of a /query response into a list of
    QueryResults.
    '''
    if payload is None:
        return []
    if payload.get('error') is not None:
        raise QueryExecutionError(payload['error'])
    return [QueryResult.from_json(r) for r in payload.get('results') or []]
