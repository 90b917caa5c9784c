"""Jinja2 templates for rendered node configurations"""
