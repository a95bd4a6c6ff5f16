"""Shared configuration, errors, constants, and logging."""
