"""Stateful runtime components: commands, timer, assistant, background."""
