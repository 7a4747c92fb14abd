from consistent_hash_ring import ConsistentHashRing
from assignment_diff import diff_rings
from ring_config import RingConfig
import logging

# Simulated request keys (e.g. S2 cell ids)
KEYS = ['CellID_12345', 'CellID_67890', 'CellID_54321', 'CellID_99999']


def main():
    config = RingConfig.from_env()
    logging.basicConfig(level=config.level, format='%(asctime)s %(levelname)s %(name)s - %(message)s')

    ring = ConsistentHashRing.from_config(config)
    ring.add_nodes(['ServerA', 'ServerB', 'ServerC'])
    for key in KEYS:
        print(f'Key {key} is assigned to {ring.get_node(key)}')

    # Snapshot ring BEFORE removing a server
    ring_before = ring.clone()

    print('\nRemoving ServerB...')
    ring.remove_node('ServerB')
    for key in KEYS:
        print(f'Key {key} is now assigned to {ring.get_node(key)}')

    diff = diff_rings(KEYS, ring_before, ring)
    print('Moved stats:', diff.summary())


if __name__ == '__main__':
    main()
