"""Bitbucket Cloud and Server/Data Center tools for the Model Context Protocol."""
