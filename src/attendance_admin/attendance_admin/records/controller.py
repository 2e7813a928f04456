from __future__ import annotations

from flask import Flask, jsonify

from ..container import Container


def register(app: Flask, container: Container) -> None:
    listeners = container.store.listeners

    @app.route("/admin/listeners", methods=["GET"], endpoint="admin_listeners")
    def admin_listeners():
        counts: dict[str, int] = {}
        for subscription in listeners.subscriptions():
            counts[subscription.collection] = counts.get(subscription.collection, 0) + 1
        return jsonify(active=listeners.active_count(), collections=counts)

    @app.route("/admin/listeners/cleanup", methods=["POST"], endpoint="admin_listeners_cleanup")
    def admin_listeners_cleanup():
        return jsonify(closed=listeners.cleanup_all())
