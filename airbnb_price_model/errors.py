#! /usr/bin/env python3
#
# SPDX-License-Identifier: GPL-3.0-or-later
#

'''
Pipeline errors

Every stage depends on the full output of the previous one, so none of these
are recovered from mid-run. The command line entry point catches
PipelineError, logs it and exits.
'''


class PipelineError(Exception):
    '''Base class for all the pipeline errors.'''


class DataLoadError(PipelineError):
    '''An input file is missing, empty or can't be parsed.'''


class SchemaValidationError(PipelineError):
    '''An expected column is absent or has the wrong type.'''

    def __init__(self, message:str, columns:list=None):
        super().__init__(message)
        self.columns = list(columns or [])


class DegenerateFeatureError(PipelineError):
    '''
    Data that can't be modeled reached the model: zero-variance or
    unencodable columns, or an empty train/test partition.
    '''


class JoinMismatchError(PipelineError):
    '''
    Neighbourhood names that exist in the listings but not in the polygons
    (or the other way around). Only raised on strict join checks, otherwise
    the mismatch is logged as a warning.
    '''

    def __init__(self, message:str, missing_polygons:list=None,
                 missing_listings:list=None):
        super().__init__(message)
        self.missing_polygons = list(missing_polygons or [])
        self.missing_listings = list(missing_listings or [])
