"""
Unit tests for the generation orchestrator (batch generator and sleep stubbed).
"""
import unittest

from generation.orchestrator import (
    GenerationFailedError,
    GenerationInputError,
    GenerationState,
    plan_batches,
    run_generation,
)
from generation.schemas import Difficulty, MCQQuestion, MatchingQuestion, QuestionType
from tests.fixtures import FakeBatchGenerator, SleepRecorder, TestFixtures


class TestPlanBatches(unittest.TestCase):

    def test_batch_sizes_per_type(self):
        config = TestFixtures.config({"MCQ": 12, "TF": 5, "MATCHING": 3, "ESSAY": 4})
        plans = plan_batches(config)
        summary = [(p.question_type.value, p.count) for p in plans]
        self.assertEqual(summary, [
            ("MCQ", 5), ("MCQ", 5), ("MCQ", 2),
            ("TF", 5),
            ("MATCHING", 2), ("MATCHING", 1),
            ("ESSAY", 3), ("ESSAY", 1),
        ])
        self.assertEqual([p.global_index for p in plans], list(range(8)))

    def test_zero_count_types_are_skipped(self):
        plans = plan_batches(TestFixtures.config({"ESSAY": 2}))
        self.assertEqual([p.question_type for p in plans], [QuestionType.ESSAY])


class TestInputValidation(unittest.IsolatedAsyncioTestCase):

    async def _assert_rejected(self, config, message):
        generator = FakeBatchGenerator()
        with self.assertRaises(GenerationInputError) as ctx:
            await run_generation(config, generate_batch=generator, sleep=SleepRecorder())
        self.assertIn(message, str(ctx.exception))
        self.assertEqual(generator.calls, [])

    async def test_short_notes_rejected_before_any_call(self):
        await self._assert_rejected(TestFixtures.config({"MCQ": 3}, notes="short"), "too short")

    async def test_zero_questions_rejected(self):
        await self._assert_rejected(TestFixtures.config({"MCQ": 0}), "No questions requested")

    async def test_more_than_fifty_rejected(self):
        await self._assert_rejected(TestFixtures.config({"MCQ": 30, "TF": 21}), "Maximum is 50")

    async def test_fifty_is_accepted(self):
        generator = FakeBatchGenerator()
        result = await run_generation(
            TestFixtures.config({"MCQ": 25, "TF": 25}),
            generate_batch=generator, sleep=SleepRecorder(),
        )
        self.assertEqual(result.generated, 50)

    async def test_progress_ends_failed_on_rejection(self):
        seen = []
        with self.assertRaises(GenerationInputError):
            await run_generation(
                TestFixtures.config({"MCQ": 0}),
                generate_batch=FakeBatchGenerator(),
                on_progress=lambda p: seen.append(p.state),
            )
        self.assertEqual(seen, [GenerationState.VALIDATING, GenerationState.FAILED])


class TestRunGeneration(unittest.IsolatedAsyncioTestCase):

    async def test_mixed_request_scenario(self):
        config = TestFixtures.config({"MCQ": 5, "TF": 3, "MATCHING": 2, "ESSAY": 1}, notes="x" * 500)
        generator = FakeBatchGenerator()
        sleeper = SleepRecorder()

        result = await run_generation(config, generate_batch=generator, sleep=sleeper, batch_delay=0.5)

        self.assertLessEqual(len(generator.calls), 11)
        self.assertEqual([c["type"] for c in generator.calls], ["MCQ", "TF", "MATCHING", "ESSAY"])
        self.assertGreaterEqual(sleeper.total, (len(generator.calls) - 1) * 0.5)
        self.assertEqual(result.generated, 11)
        self.assertEqual(result.requested, 11)
        self.assertEqual(result.content_length, 500)
        self.assertEqual(result.sections_used, 4)
        self.assertIsNone(result.errors)

    async def test_ids_are_sequential_and_unique(self):
        config = TestFixtures.config({"MCQ": 7, "TF": 4, "ESSAY": 2})
        result = await run_generation(config, generate_batch=FakeBatchGenerator(), sleep=SleepRecorder())
        ids = [q.id for q in result.questions]
        self.assertEqual(ids, [f"q{i}" for i in range(1, 14)])
        self.assertEqual(len(set(ids)), len(ids))

    async def test_difficulty_is_pinned_to_config(self):
        config = TestFixtures.config({"TF": 2}, difficulty="Hard")
        result = await run_generation(config, generate_batch=FakeBatchGenerator(), sleep=SleepRecorder())
        self.assertTrue(all(q.difficulty == Difficulty.HARD for q in result.questions))

    async def test_batches_receive_rotation_index_and_history(self):
        config = TestFixtures.config({"MCQ": 7, "MATCHING": 3})
        generator = FakeBatchGenerator()
        await run_generation(config, generate_batch=generator, sleep=SleepRecorder())

        self.assertEqual([c["batch_index"] for c in generator.calls], [0, 1, 2, 3])
        self.assertTrue(all(c["total_batches"] == 4 for c in generator.calls))
        self.assertEqual([c["previous"] for c in generator.calls], [0, 5, 7, 9])
        self.assertEqual([c["start_id"] for c in generator.calls], [1, 6, 8, 10])

    async def test_returned_question_invariants(self):
        config = TestFixtures.config({"MCQ": 6, "MATCHING": 3})
        result = await run_generation(config, generate_batch=FakeBatchGenerator(), sleep=SleepRecorder())
        for q in result.questions:
            self.assertTrue(q.id)
            if isinstance(q, MCQQuestion):
                self.assertEqual(len(q.options), 4)
                self.assertIn(q.answer, q.options)
            if isinstance(q, MatchingQuestion):
                self.assertTrue(set(q.correct_matches) <= {i.id for i in q.right_items})
                self.assertTrue(set(q.correct_matches.values()) <= {i.id for i in q.left_items})

    async def test_failed_batch_is_skipped_and_reported(self):
        config = TestFixtures.config({"MCQ": 10, "TF": 2})
        generator = FakeBatchGenerator(fail_calls={1})
        result = await run_generation(config, generate_batch=generator, sleep=SleepRecorder())

        self.assertEqual(len(generator.calls), 3)
        self.assertEqual(result.generated, 7)
        self.assertEqual(result.requested, 12)
        self.assertTrue(result.is_partial)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual([q.id for q in result.questions], [f"q{i}" for i in range(1, 8)])

        mcq = result.breakdown[0]
        self.assertEqual((mcq.type, mcq.requested, mcq.generated, mcq.batches, mcq.failed_batches),
                         (QuestionType.MCQ, 10, 5, 2, 1))

    async def test_whole_type_failing_still_succeeds_partially(self):
        config = TestFixtures.config({"TF": 2, "ESSAY": 2})
        result = await run_generation(
            config, generate_batch=FakeBatchGenerator(fail_types={"ESSAY"}), sleep=SleepRecorder()
        )
        self.assertEqual(result.generated, 2)
        self.assertEqual({q.type for q in result.questions}, {"TF"})

    async def test_shortfall_is_partial_success(self):
        config = TestFixtures.config({"MCQ": 5})
        result = await run_generation(
            config, generate_batch=FakeBatchGenerator(shortfall=2), sleep=SleepRecorder()
        )
        self.assertEqual((result.generated, result.requested), (3, 5))
        self.assertIsNone(result.errors)

    async def test_no_valid_questions_is_a_failure(self):
        config = TestFixtures.config({"MCQ": 6, "TF": 1})
        generator = FakeBatchGenerator(fail_types={"MCQ", "TF"})
        with self.assertRaises(GenerationFailedError) as ctx:
            await run_generation(config, generate_batch=generator, sleep=SleepRecorder())
        self.assertEqual(len(generator.calls), 3)
        self.assertEqual(len(ctx.exception.details), 3)

    async def test_retries_are_configurable(self):
        config = TestFixtures.config({"TF": 3})
        generator = FakeBatchGenerator(fail_calls={0, 1})
        result = await run_generation(
            config, generate_batch=generator, sleep=SleepRecorder(), batch_retries=2
        )
        self.assertEqual(len(generator.calls), 3)
        self.assertEqual(result.generated, 3)

    async def test_no_retry_by_default(self):
        config = TestFixtures.config({"TF": 3})
        generator = FakeBatchGenerator(fail_calls={0})
        with self.assertRaises(GenerationFailedError):
            await run_generation(config, generate_batch=generator, sleep=SleepRecorder(), batch_retries=0)
        self.assertEqual(len(generator.calls), 1)

    async def test_delay_between_every_pair_of_batches(self):
        config = TestFixtures.config({"MCQ": 11})
        sleeper = SleepRecorder()
        await run_generation(config, generate_batch=FakeBatchGenerator(), sleep=sleeper, batch_delay=0.75)
        self.assertEqual(sleeper.delays, [0.75, 0.75])

    async def test_progress_walks_the_state_machine(self):
        states = []
        config = TestFixtures.config({"MCQ": 6, "ESSAY": 1})
        await run_generation(
            config, generate_batch=FakeBatchGenerator(), sleep=SleepRecorder(),
            on_progress=lambda p: states.append((p.state, p.question_type, p.batch)),
        )
        self.assertEqual(states[0][0], GenerationState.VALIDATING)
        self.assertEqual(states[1:4], [
            (GenerationState.GENERATING, QuestionType.MCQ, 1),
            (GenerationState.GENERATING, QuestionType.MCQ, 2),
            (GenerationState.GENERATING, QuestionType.ESSAY, 1),
        ])
        self.assertEqual([s[0] for s in states[4:]], [GenerationState.AGGREGATING, GenerationState.DONE])

    async def test_duplicates_are_warned_not_removed(self):
        async def same_question(question_type, count, *args):
            from generation.question_generator import BatchResult
            return BatchResult(questions=[TestFixtures.tf(qid="x") for _ in range(count)])

        config = TestFixtures.config({"TF": 3})
        result = await run_generation(config, generate_batch=same_question, sleep=SleepRecorder())
        self.assertEqual(result.generated, 3)
        self.assertEqual(len(result.warnings), 2)


if __name__ == "__main__":
    unittest.main()
