"""Widgets that make up the atcli screens, and the registry that holds them."""