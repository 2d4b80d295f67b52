#!/usr/bin/env python
"""
Sample application to demonstrate the Space Planning AI system.
This script builds a small brief in code, generates room variants
(with a scripted advisor for one run), derives zones and saves renders.
"""

import argparse
import asyncio
import os
from datetime import datetime

from space_planning_ai.advisors.base_advisor import BaseAdvisor
from space_planning_ai.advisors.schemas import RoomVariantProposal
from space_planning_ai.config.brief_loader import rooms_from_dicts
from space_planning_ai.core.pipeline import PlanningPipeline
from space_planning_ai.visualization.renderer import VariantRenderer
from space_planning_ai.visualization.export import export_result_to_json, export_variants_to_csv


class ScriptedAdvisor(BaseAdvisor):
    """Advisor that proposes the same proportions for every room"""

    name = 'scripted'

    async def propose_room_variants(self, room):
        side = room.area_target ** 0.5
        return [
            RoomVariantProposal(width=side * 1.25, depth=side / 1.25, notes='Wide, facade-facing'),
            RoomVariantProposal(width=side / 1.25, depth=side * 1.25, notes='Deep, core-facing'),
            # Deliberately off by a factor of two; the validator drops it
            RoomVariantProposal(width=side * 2, depth=side * 2, notes='Oversized'),
        ]

    async def recommend_zones(self, rooms):
        return None


def create_sample_rooms():
    """Create a small assisted living brief"""
    print('Creating sample brief...')
    return rooms_from_dicts([
        {'name': 'Resident Bedroom', 'quantity': 36, 'area_target': 30,
         'category': 'client', 'requires_daylight': True,
         'width_range': [3, 7], 'depth_range': [3, 7]},
        {'name': 'Shared Dining Room', 'quantity': 3, 'area_target': 40,
         'category': 'client', 'requires_daylight': True},
        {'name': 'Entrance Hall', 'quantity': 1, 'area_target': 35,
         'category': 'general', 'requires_daylight': True},
        {'name': 'Manager Office', 'quantity': 1, 'area_target': 14,
         'category': 'supporting', 'requires_daylight': True},
        {'name': 'Cleaning Storage', 'quantity': 3, 'area_target': 2,
         'category': 'supporting'},
    ])


def main():
    parser = argparse.ArgumentParser(description='Generate room variants and zones for a sample brief')
    parser.add_argument('--output', type=str, default='output',
                        help='Output directory for renderings and exports')
    parser.add_argument('--no-advisor', action='store_true',
                        help='Skip the scripted advisor run')

    args = parser.parse_args()

    # Create output directory
    os.makedirs(args.output, exist_ok=True)

    # Create timestamp for unique filenames
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    rooms = create_sample_rooms()

    # Deterministic run
    print('\nRunning deterministic pipeline...')
    result = PlanningPipeline(parameters={'batch_delay': 0.0}).run(rooms)
    print(result)
    for room in result.rooms:
        dims = ', '.join(f'{v.width}x{v.depth}' for v in room.variants) or 'none'
        print(f'  {room.name}: {dims}')
    for zone in result.zones:
        strategies = ', '.join(v.strategy for v in zone.variants)
        print(f'  {zone.name}: {zone.target_area_net:.0f} m² net -> {strategies}')

    export_result_to_json(result, os.path.join(args.output, f'plan_{timestamp}.json'))
    export_variants_to_csv(result.rooms, os.path.join(args.output, f'variants_{timestamp}.csv'))

    print('\nRendering variants and zones...')
    VariantRenderer().save_renders(result.rooms, result.zones,
                                   output_dir=args.output, prefix=f'plan_{timestamp}')

    # Advisor-guided run
    if not args.no_advisor:
        print('\nRunning with scripted advisor...')
        pipeline = PlanningPipeline(advisor=ScriptedAdvisor(), parameters={'batch_delay': 0.0})
        advised = asyncio.run(pipeline.run_async(rooms))
        print(f'Rejected advisor proposals: {advised.rejected_proposals}')
        for room in advised.rooms:
            sources = ', '.join(v.source for v in room.variants) or 'none'
            print(f'  {room.name}: {sources}')

    print(f"\nCompleted! Output files saved to '{args.output}' directory.")


if __name__ == '__main__':
    main()
