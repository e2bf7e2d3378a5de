"""
SmartHome Dashboard - Home Application

This Django application provides the core home functionality: rooms and
devices, device control, room bulk control and the realtime broadcast hub
that keeps connected dashboards in sync.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""
