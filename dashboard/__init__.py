"""Dashboard application for the clinic backend.

This package contains models, serializers, views and route registrations
behind the clinic dashboard front-end, together with the service health
monitor that feeds its system status panel.
"""
