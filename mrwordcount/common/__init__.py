"""Shared configuration, errors, records and logging setup."""
