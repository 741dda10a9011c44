"""Slash commands and the manager that dispatches them."""