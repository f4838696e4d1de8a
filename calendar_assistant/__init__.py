"""
Calendar Assistant - Conversational Scheduling Core
===================================================

Turns free-text requests into validated, deduplicated calendar and email
operations, and proposes ranked conflict-free meeting times.

Modules:
- core: Configuration, logging, errors, duplicate-call cache, LLM clients
- scheduling: Conflict model, slot search, ranking, date recalculation, analytics
- tools: Google Calendar boundary, calendar links, ICS, email drafts, recipients
- agents: Tool registry, argument normalization, router, chat assistant
"""

__version__ = "1.0.0"
__author__ = "Calendar Assistant Project"
