"""Match scoring, confidence and guardrail-governed shortlisting."""

__version__ = "0.1.0"
