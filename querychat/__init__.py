"""querychat: schema-aware natural-language-to-query relay.

Turns free-form prompts into database queries through a hosted LLM, with an
optional rolling conversation history kept in MongoDB.
"""

__version__ = "1.0.0"
