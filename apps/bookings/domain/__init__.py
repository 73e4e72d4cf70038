"""Pure booking domain: overlap rules, availability and bike assignment."""
