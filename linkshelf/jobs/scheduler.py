import os

from apscheduler.schedulers.background import BackgroundScheduler

from linkshelf.services.changes import prune_change_events


scheduler = BackgroundScheduler()


def run_change_feed_prune(app):
    with app.app_context():
        removed = prune_change_events(app.config["CHANGE_FEED_RETENTION_HOURS"])
        if removed:
            app.logger.info("Pruned %s expired change events", removed)


def start_scheduler(app):
    if not app.config.get("SCHEDULER_ENABLED", True):
        return
    if os.environ.get("WERKZEUG_RUN_MAIN") == "false":
        return

    interval_minutes = app.config["CHANGE_FEED_PRUNE_INTERVAL_MINUTES"]
    if not scheduler.get_jobs():
        scheduler.add_job(
            run_change_feed_prune,
            "interval",
            minutes=interval_minutes,
            kwargs={"app": app},
            id="change_feed_prune",
            replace_existing=True,
        )
        scheduler.start()
