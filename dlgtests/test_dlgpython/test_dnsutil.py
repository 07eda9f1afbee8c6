#
# Copyright (C) 2026  dlgadmin Contributors see COPYING for license
#
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.resolver
from dns.rdtypes.IN.SRV import SRV

from dlgpython import dnsutil

import pytest

pytestmark = pytest.mark.tier0


def mksrv(priority, weight, port, target):
    return SRV(
        rdclass=dns.rdataclass.IN,
        rdtype=dns.rdatatype.SRV,
        priority=priority,
        weight=weight,
        port=port,
        target=dns.name.from_text(target)
    )


class TestSortSRV:
    def test_empty(self):
        assert dnsutil.sort_prio_weight([]) == []

    def test_prio(self):
        h1 = mksrv(1, 0, 389, u"dc1.example.test")
        h2 = mksrv(2, 0, 389, u"dc2.example.test")
        h3 = mksrv(3, 0, 389, u"dc3.example.test")
        assert dnsutil.sort_prio_weight([h3, h2, h1]) == [h1, h2, h3]
        assert dnsutil.sort_prio_weight([h3, h3, h3]) == [h3]

        h3_636 = mksrv(4, 0, 636, u"dc3.example.test")
        assert dnsutil.sort_prio_weight([h1, h3, h3_636]) == [h1, h3, h3_636]

    def test_weight(self):
        h1 = mksrv(1, 0, 389, u"dc1.example.test")
        h2_w15 = mksrv(2, 15, 389, u"dc2.example.test")
        h3_w10 = mksrv(2, 10, 389, u"dc3.example.test")

        permutations = {
            (h1, h2_w15, h3_w10),
            (h1, h3_w10, h2_w15),
        }
        seen = set()
        for _unused in range(1000):
            result = tuple(dnsutil.sort_prio_weight([h1, h2_w15, h3_w10]))
            assert result in permutations
            seen.add(result)
            if seen == permutations:
                break
        else:
            pytest.fail("sorting didn't exhaust all permutations.")


class TestLocateServers:
    def test_hosts_and_ports(self, monkeypatch):
        records = [
            mksrv(0, 100, 389, u"dc1.example.test."),
            mksrv(10, 100, 3268, u"gc.example.test."),
        ]
        queries = []

        def query_srv(qname, resolver=None, **kwargs):
            queries.append(qname)
            return records

        monkeypatch.setattr(dnsutil, 'query_srv', query_srv)
        assert dnsutil.locate_servers('example.test') == [
            'dc1.example.test', 'gc.example.test:3268']
        assert queries == ['_ldap._tcp.example.test']

    def test_not_found(self, monkeypatch):
        def query_srv(qname, resolver=None, **kwargs):
            raise dns.resolver.NXDOMAIN()

        monkeypatch.setattr(dnsutil, 'query_srv', query_srv)
        assert dnsutil.locate_servers('example.test') == []

    def test_query_srv_sorts(self):
        h1 = mksrv(1, 0, 389, u"dc1.example.test.")
        h2 = mksrv(2, 0, 389, u"dc2.example.test.")

        class Resolver:
            def resolve(self, qname, rdtype=None, **kwargs):
                assert rdtype == dns.rdatatype.SRV
                return [h2, h1]

        assert dnsutil.query_srv('_ldap._tcp.example.test',
                                 resolver=Resolver()) == [h1, h2]
