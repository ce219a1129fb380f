"""Debrief Vault Meta information.
   Debrief Vault keeps local application secrets encrypted at rest
   under a machine-local master key.
"""
__title__ = 'debrief_vault'
__description__ = (
   'Local encrypted secret vault keeping application secrets '
   'encrypted at rest under a machine-local master key.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Workday Debrief'
__author__ = 'Workday Debrief'
__author_email__ = 'dev@workdaydebrief.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/workday-debrief/debrief-vault'
