import unittest
from datetime import datetime, timedelta, timezone

from pomodoro import TaskPriority
from storage import RecordStore, open_database
from tasks import TaskNotFoundError, TaskRegistry


class TaskRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        self.db = open_database(":memory:")
        self.records = RecordStore(self.db)
        self.registry = TaskRegistry(self.db, self.records, now_fn=lambda: self.now)

    def tearDown(self) -> None:
        self.db.close()

    def test_create_task_trims_title_and_parses_priority(self) -> None:
        task = self.registry.create_task("  Review PR  ", "high", estimated_pomodoros=3)

        self.assertEqual("Review PR", task.title)
        self.assertIs(TaskPriority.HIGH, task.priority)
        self.assertEqual(3, task.estimated_pomodoros)
        self.assertEqual(0, task.actual_pomodoros)
        self.assertEqual(self.now, task.created_at)
        self.assertFalse(task.done)

    def test_create_task_rejects_empty_title_and_unknown_priority(self) -> None:
        with self.assertRaises(ValueError):
            self.registry.create_task("   ")
        with self.assertRaises(ValueError):
            self.registry.create_task("Task", "Critical")
        with self.assertRaises(ValueError):
            self.registry.create_task("Task", estimated_pomodoros=0)
        self.assertEqual([], self.registry.list_tasks())

    def test_require_raises_for_unknown_task(self) -> None:
        self.assertIsNone(self.registry.get(99))
        with self.assertRaises(TaskNotFoundError):
            self.registry.require(99)

    def test_list_tasks_orders_open_first_then_priority_then_newest(self) -> None:
        low = self.registry.create_task("Low", TaskPriority.LOW)
        self.now += timedelta(minutes=1)
        urgent = self.registry.create_task("Urgent", TaskPriority.URGENT)
        self.now += timedelta(minutes=1)
        medium_old = self.registry.create_task("Medium old")
        self.now += timedelta(minutes=1)
        medium_new = self.registry.create_task("Medium new")
        self.registry.complete_task(urgent.id)

        titles = [task.title for task in self.registry.list_tasks()]

        self.assertEqual([medium_new.title, medium_old.title, low.title, urgent.title], titles)

    def test_complete_task_records_completion_once(self) -> None:
        task = self.registry.create_task("Write tests", TaskPriority.URGENT)
        self.registry.increment_pomodoro_count(task.id)
        self.registry.increment_pomodoro_count(task.id)

        completed = self.registry.complete_task(task.id)
        again = self.registry.complete_task(task.id)

        self.assertTrue(completed.done)
        self.assertEqual(self.now, completed.completed_at)
        self.assertEqual(completed, again)
        [completion] = self.records.list_task_completions()
        self.assertEqual(task.id, completion.task_id)
        self.assertEqual("Urgent", completion.task_priority)
        self.assertEqual(2, completion.pomodoros_spent)

    def test_uncomplete_task_removes_completion(self) -> None:
        task = self.registry.create_task("Ship")
        self.registry.complete_task(task.id)

        reopened = self.registry.uncomplete_task(task.id)

        self.assertFalse(reopened.done)
        self.assertIsNone(reopened.completed_at)
        self.assertEqual([], self.records.list_task_completions())

    def test_delete_task_only_for_open_tasks(self) -> None:
        open_task = self.registry.create_task("Open")
        done_task = self.registry.create_task("Done")
        self.registry.complete_task(done_task.id)

        self.registry.delete_task(open_task.id)
        with self.assertRaises(ValueError):
            self.registry.delete_task(done_task.id)
        with self.assertRaises(TaskNotFoundError):
            self.registry.delete_task(open_task.id)

        self.assertEqual([done_task.id], [task.id for task in self.registry.list_tasks()])

    def test_set_priority(self) -> None:
        task = self.registry.create_task("Plan")

        updated = self.registry.set_priority(task.id, "Low")

        self.assertIs(TaskPriority.LOW, updated.priority)

    def test_increment_pomodoro_count_requires_existing_task(self) -> None:
        with self.assertRaises(TaskNotFoundError):
            self.registry.increment_pomodoro_count(42)


if __name__ == "__main__":
    unittest.main()
