from __future__ import annotations

from conftest import make_nodes

from bugledger.graph import IssueNode, closure, find_cycles, layers, longest_chain


class TestFindCycles:
    def test_three_node_loop_is_one_component(self) -> None:
        nodes = make_nodes({1: [2], 2: [3], 3: [1]})

        assert find_cycles(nodes) == [[1, 2, 3]]

    def test_acyclic_graph_has_no_cycles(self) -> None:
        nodes = make_nodes({1: [2, 3], 2: [4], 3: [4], 4: []})

        assert find_cycles(nodes) == []

    def test_empty_snapshot(self) -> None:
        assert find_cycles({}) == []

    def test_separate_components_ordered_by_smallest_id(self) -> None:
        nodes = make_nodes({7: [8], 8: [7], 2: [5], 5: [2], 9: [2]})

        assert find_cycles(nodes) == [[2, 5], [7, 8]]

    def test_ignores_edges_leaving_the_working_set(self) -> None:
        nodes = {
            1: IssueNode(1, depends_on=(2, 99)),
            2: IssueNode(2, depends_on=(1,), blocks=(1,)),
        }

        assert find_cycles(nodes) == [[1, 2]]

    def test_deep_chain_does_not_hit_recursion_limit(self) -> None:
        size = 5000
        edges = {n: [n + 1] for n in range(1, size)}
        edges[size] = [1]

        cycles = find_cycles(make_nodes(edges))

        assert len(cycles) == 1
        assert len(cycles[0]) == size


class TestLongestChain:
    def test_follows_dependents_from_the_root_prerequisite(self) -> None:
        # 2 has no deps; 1 depends on 2; 3 depends on 1.
        nodes = make_nodes({2: [], 1: [2], 3: [1]})

        chain = longest_chain(nodes)

        assert chain == [2, 1, 3]

    def test_empty_snapshot_gives_empty_chain(self) -> None:
        assert longest_chain({}) == []

    def test_isolated_issues_give_single_element_chain(self) -> None:
        nodes = make_nodes({4: [], 5: []})

        assert longest_chain(nodes) == [4]

    def test_first_longest_chain_wins_ties(self) -> None:
        nodes = make_nodes({2: [1], 3: [1]})

        assert longest_chain(nodes) == [1, 2]

    def test_terminates_on_cycle_with_simple_path(self) -> None:
        nodes = make_nodes({1: [2], 2: [3], 3: [1], 4: [3]})

        chain = longest_chain(nodes)

        assert len(chain) == 4
        assert len(set(chain)) == len(chain)
        for prev, nxt in zip(chain, chain[1:]):
            assert prev in nodes[nxt].depends_on


class TestClosure:
    def _diamond(self) -> dict[int, IssueNode]:
        # A=1 depends on B=2 and C=3; B and C depend on D=4.
        return make_nodes({1: [2, 3], 2: [4], 3: [4], 4: []})

    def test_closure_from_bottom_reaches_everything(self) -> None:
        assert closure(4, self._diamond()) == {1, 2, 3, 4}

    def test_closure_from_middle_excludes_sibling(self) -> None:
        assert closure(2, self._diamond()) == {1, 2, 4}

    def test_closure_of_unknown_root_is_just_root(self) -> None:
        assert closure(42, self._diamond()) == {42}

    def test_closure_on_cycle(self) -> None:
        nodes = make_nodes({1: [2], 2: [1], 3: []})

        assert closure(1, nodes) == {1, 2}


class TestLayers:
    def test_chain_layers_bottom_up(self) -> None:
        # A=1 depends on B=2, B depends on C=3.
        nodes = make_nodes({1: [2], 2: [3], 3: []})

        assert layers({1, 2, 3}, nodes) == [[3], [2], [1]]

    def test_diamond_shares_a_layer(self) -> None:
        nodes = make_nodes({1: [2, 3], 2: [4], 3: [4], 4: []})

        assert layers(nodes.keys(), nodes) == [[4], [2, 3], [1]]

    def test_prerequisites_outside_working_set_are_ignored(self) -> None:
        nodes = make_nodes({1: [2], 2: [3], 3: []})

        assert layers([1, 2], nodes) == [[2], [1]]

    def test_cycle_lands_in_final_layer(self) -> None:
        nodes = make_nodes({1: [2], 2: [1], 3: [], 4: [3]})

        assert layers(nodes.keys(), nodes) == [[3], [4], [1, 2]]

    def test_empty_input(self) -> None:
        assert layers([], {}) == []
