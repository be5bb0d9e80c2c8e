"""Test doubles for the NetStorage client."""
