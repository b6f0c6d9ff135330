"""Bootstrap workflow components.

- Settings loaded from the environment / `.env`
- Structured logging
- A typed GitHub client plus the reconcile / seed / link steps built on it
- The orchestrator that sequences them
"""
