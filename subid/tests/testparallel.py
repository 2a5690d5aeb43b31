#!/usr/bin/env python
""" Test the parallel module"""
import unittest
import copy

from subid import parallel


try:
    from mpi4py import MPI
    rank = MPI.COMM_WORLD.Get_rank()
    distributed = MPI.COMM_WORLD.Get_size() > 1
except ImportError:
    print('Warning: without mpi4py module, only serial behavior is tested')
    distributed = False
    rank = 0


class TestParallel(unittest.TestCase):
    def setUp(self):
        self.num_MPI_workers = parallel._num_MPI_workers

    def tearDown(self):
        parallel._num_MPI_workers = self.num_MPI_workers
        parallel.barrier()

    def test_init(self):
        """Test that the module reads the MPI environment correctly."""
        self.assertEqual(parallel.get_rank(), rank)
        self.assertEqual(parallel.is_distributed(), distributed)
        self.assertEqual(parallel.is_rank_zero(), rank == 0)

    def test_find_assignments(self):
        """Tests that the correct processor assignments are determined

        Given a list of tasks, it tests that the correct assignment list is
        returned. Rather than requiring the test to be run with many
        different numbers of procs the behavior of this function is mimicked
        by manually setting num_MPI_workers
        """
        # Assume each item in task list has equal weight
        tasks = ['1', '2', '4', '3', '6', '7', '5']
        copy_task_list = copy.deepcopy(tasks)
        parallel._num_MPI_workers = 5
        correct_assignments = [['1'], ['2'], ['4', '3'], ['6'], ['7', '5']]
        self.assertEqual(parallel.find_assignments(tasks),
            correct_assignments)
        # Check that the original list is not modified.
        self.assertEqual(tasks, copy_task_list)

        tasks = [3, 4, 1, 5]
        parallel._num_MPI_workers = 2
        correct_assignments = [[3, 4], [1, 5]]
        self.assertEqual(parallel.find_assignments(tasks),
            correct_assignments)

        # Allow for uneven weighting of items in task list, e.g. experiments
        # with different numbers of samples
        tasks = ['1', '2', '4', '3', '6', '7', '5']
        task_weights = [1, 3, 2, 3, 3, 2, 1]
        parallel._num_MPI_workers = 5
        correct_assignments = [['1', '2'], ['4'], ['3'], ['6'], ['7', '5']]
        self.assertEqual(parallel.find_assignments(tasks,
            task_weights=task_weights), correct_assignments)

        # Due to the highly uneven task weighting, the first proc will take up
        # the first 3 tasks, leaving none for the last processor
        tasks = ['a', 4, (2, 1), 4.3]
        task_weights = [.1, .1, .1, .7]
        copy_task_weights = copy.deepcopy(task_weights)
        parallel._num_MPI_workers = 3
        correct_assignments = [['a', 4, (2, 1)], [4.3], []]
        self.assertEqual(parallel.find_assignments(tasks,
            task_weights=task_weights), correct_assignments)
        self.assertEqual(task_weights, copy_task_weights)

    @unittest.skipIf(distributed, 'Serial gather only')
    def test_allgather_serial(self):
        self.assertEqual(parallel.allgather([1, 2]), [[1, 2]])


if __name__ == '__main__':
    unittest.main()
