from prometheus_client import Counter, Histogram


reminder_cycles_total = Counter(
    "reminder_cycles_total",
    "Total reminder dispatch cycles completed",
)

reminder_cycles_aborted_total = Counter(
    "reminder_cycles_aborted_total",
    "Total reminder dispatch cycles aborted by store errors",
)

reminder_cycle_duration_seconds = Histogram(
    "reminder_cycle_duration_seconds",
    "Wall-clock duration of reminder dispatch cycles",
)

reminders_dispatch_success_total = Counter(
    "reminders_dispatch_success_total",
    "Total successful reminder deliveries",
    ["trigger"],
)

reminders_dispatch_failed_total = Counter(
    "reminders_dispatch_failed_total",
    "Total failed reminder deliveries",
    ["trigger"],
)

reminders_committed_total = Counter(
    "reminders_committed_total",
    "Total events marked as sent in the store",
)
