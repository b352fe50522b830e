"""PII Vault Meta information.
   PII Vault seals sensitive text fields with keys exported from a transit key service.
"""
__title__ = 'pii_vault'
__description__ = (
   'Field-level envelope encryption for sensitive text, '
   'with keys managed by a Vault transit engine.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/pii-vault'
