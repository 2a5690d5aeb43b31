"""Parallel functions for distributed memory.

All functions behave as serial identities when mpi4py is not installed or
only one MPI worker is running.
"""
import numpy as np


# Check to see if MPI is available by importing MPI-related modules
try:
    from mpi4py import MPI
    _MPI_avail = True
except ImportError:
    _MPI_avail = False

# If MPI is available, gather MPI data
if _MPI_avail:
    comm = MPI.COMM_WORLD

    # To adjust number of procs, use submission script/mpiexec
    _num_MPI_workers = comm.Get_size()
    _rank = comm.Get_rank()
    if _num_MPI_workers > 1:
        _is_distributed = True
    else:
        _is_distributed = False
else:
    _num_MPI_workers = 1
    _rank = 0
    _is_distributed = False
    comm = None


def get_rank():
    """Returns rank of this processor/MPI worker."""
    return _rank


def is_distributed():
    """Returns True if there is more than one processor/MPI worker and mpi4py
    was imported properly."""
    return _is_distributed


def is_rank_zero():
    """Returns True if rank is zero, False if not."""
    return _rank == 0


def barrier():
    """Wrapper for Barrier(); forces all processors/MPI workers to
    synchronize."""
    if _is_distributed:
        comm.Barrier()


def print_from_rank_zero(*msgs):
    """Prints ``msgs`` from rank zero processor/MPI worker only."""
    if is_rank_zero():
        print(*msgs)


def allgather(vals):
    """Gathers ``vals`` from every processor/MPI worker onto all of them.

    Returns:
        ``outputs``: List with one entry per rank, ordered by rank.
    """
    if _is_distributed:
        return comm.allgather(vals)
    return [vals]


def find_assignments(tasks, task_weights=None):
    """Evenly distributes tasks among all processors/MPI workers using task
    weights.

    Args:
        ``tasks``: List of tasks.  A "task" can be any object that
        corresponds to a set of operations that needs to be completed. For
        example ``tasks`` could be a list of experiment indices.

    Kwargs:
        ``task_weights``: List of weights for each task.  These are used to
        equally distribute the workload among processors/MPI workers, in
        case some tasks are more expensive than others.

    Returns:
        ``task_assignments``: 2D list of tasks, with indices corresponding
        to [rank][task_index].  Each processor/MPI worker is responsible
        for ``task_assignments[rank]``
    """
    task_assignments = []

    # If no weights are given, assume each task has uniform weight
    if task_weights is None:
        task_weights = np.ones(len(tasks))
    else:
        task_weights = np.array(task_weights)

    first_unassigned_index = 0

    for worker_num in range(_num_MPI_workers):
        # amount of work to do, float (scaled by weights)
        work_remaining = sum(task_weights[first_unassigned_index:])

        # Number of MPI workers whose jobs have not yet been assigned
        num_remaining_workers = _num_MPI_workers - worker_num

        # Distribute work load evenly across workers
        work_per_worker = (1. * work_remaining) / num_remaining_workers

        # If task list is not empty, compute assignments
        if task_weights[first_unassigned_index:].size != 0:
            # Index of tasks element which has sum(tasks[:ind])
            # closest to work_per_worker
            new_max_task_index = np.abs(np.cumsum(
                task_weights[first_unassigned_index:]) -\
                work_per_worker).argmin() + first_unassigned_index
            # Append all tasks up to and including new_max_task_index
            task_assignments.append(tasks[first_unassigned_index:\
                new_max_task_index+1])
            first_unassigned_index = new_max_task_index+1
        else:
            task_assignments.append([])

    return task_assignments
