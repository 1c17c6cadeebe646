"""
Command Line Interface Package

Command Structure:
- paywatch watch: poll the inbox on an interval and export new transactions
- paywatch poll: run one cycle and print the batch
- paywatch parse: run the extractor against a saved email
- paywatch config / version: utility commands
"""
