# python main.py --brief data/briefs/sample_brief.json --mode plan --visualize
# python main.py --brief data/briefs/sample_brief.json --mode summary
"""
Main application for Space Planning AI.
This integrates all components (grid, constraints, variant generation,
zoning, export) and provides a command-line interface for turning a
room brief into room variants and program zones.
"""

import os
import sys
import argparse
import asyncio
import logging
import time
from datetime import datetime
from typing import List, Dict, Any, Optional

from space_planning_ai.advisors.base_advisor import AdvisorError, BaseAdvisor
from space_planning_ai.config.brief_loader import BriefFormatError, load_brief
from space_planning_ai.config.config_loader import (
    BRIEFS_DIR,
    create_advisor,
    get_planning_parameters,
)
from space_planning_ai.core.constraints import check_area_feasibility, validate_room_spec
from space_planning_ai.core.grid import format_dimension
from space_planning_ai.core.pipeline import PlanningPipeline, PlanningResult
from space_planning_ai.models.room import RoomSpec
from space_planning_ai.models.zone import ProgramZone
from space_planning_ai.utils.metrics import summarize_brief, variant_statistics, zone_totals
from space_planning_ai.visualization.export import (
    export_result_to_json,
    export_rooms_to_json,
    export_variants_to_csv,
    export_zones_to_json,
)


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Space Planning AI - Variant and Zone Generator")

    parser.add_argument(
        "--brief",
        type=str,
        default=os.path.join(BRIEFS_DIR, "sample_brief.json"),
        help="Path to the JSON brief",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output",
        help="Output directory for generated files",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["validate", "variants", "zones", "plan", "summary"],
        default="plan",
        help="What to run (validate specs, room variants, zones, full plan, or a brief summary)",
    )
    parser.add_argument(
        "--advisor",
        type=str,
        choices=["none", "openai"],
        default="none",
        help="Advisory service used for proposals",
    )
    parser.add_argument(
        "--parameters",
        type=str,
        default="default",
        help="Planning parameter set name (data/planning) or path to a JSON file",
    )
    parser.add_argument(
        "--no-repair",
        action="store_true",
        help="Skip the relaxed repair pass for rooms without variants",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="Save PNG renders of variants and zones (requires matplotlib)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def print_brief_summary(rooms: List[RoomSpec]):
    """Print category, daylight and size statistics of a brief"""
    summary = summarize_brief(rooms)

    print("\nBY CATEGORY:")
    for category, totals in summary["by_category"].items():
        print(f"  {category.upper():<12} {totals['rooms']:>4} rooms  {totals['area']:>8.0f} m²")

    daylight = summary["daylight"]
    print("\nDAYLIGHT REQUIREMENTS:")
    print(
        f"  Rooms needing daylight: {daylight['rooms']}/{summary['total_rooms']} "
        f"({daylight['room_share'] * 100:.0f}%)"
    )
    print(f"  Daylight area: {daylight['area']:.0f} m² ({daylight['area_share'] * 100:.0f}%)")

    print("\nLARGEST ROOMS:")
    for room in summary["largest_rooms"]:
        print(
            f"  {room['name']:<40} {room['area_target']:>6.1f} m² x {room['quantity']:>3} "
            f"= {room['total_area']:>7.0f} m²"
        )

    print("\nMOST NUMEROUS ROOMS:")
    for room in summary["most_numerous_rooms"]:
        print(f"  {room['quantity']:>4}x {room['name']}")

    print(
        f"\n{summary['room_types']} room types | {summary['total_rooms']} total rooms | "
        f"{summary['total_area']:.0f} m² total"
    )


def validate_rooms(rooms: List[RoomSpec], parameters: Dict[str, Any]) -> bool:
    """Print specification and feasibility problems. Returns True if all rooms pass."""
    print("\nValidating room specifications...")
    all_valid = True
    for room in rooms:
        result = validate_room_spec(
            room, parameters["min_room_width"], parameters["min_room_depth"]
        ).merge(check_area_feasibility(room))
        if not result.valid:
            all_valid = False
        if result.errors or result.warnings:
            status = "INVALID" if not result.valid else "ok"
            print(f"  [{status}] {room.name} ({room.id})")
            for error in result.errors:
                print(f"      error: {error}")
            for warning in result.warnings:
                print(f"      warning: {warning}")

    print("All rooms valid" if all_valid else "Some rooms need correction")
    return all_valid


def print_progress(current: int, total: int, name: str):
    print(f"  [{current}/{total}] {name}")


def print_variants(rooms: List[RoomSpec]):
    """Print variant statistics and the variants of each room"""
    stats = variant_statistics(rooms)
    print("\nVARIANT STATISTICS:")
    print(f"  Rooms with variants: {stats['rooms_with_variants']}/{stats['room_types']}")
    print(f"  Total variants: {stats['total_variants']}")
    print(f"  Average per room: {stats['average_per_room']:.1f}")
    ratios = stats["aspect_ratios"]
    print(f"  Square: {ratios['square']}  Wide: {ratios['wide']}  Deep: {ratios['deep']}")

    for room in rooms:
        print(f"\n  {room.name} (target {format_dimension(room.area_target)}²)")
        if not room.variants:
            print("    no valid variants")
        for variant in room.variants:
            print(
                f"    {variant.id}: {format_dimension(variant.width)} x "
                f"{format_dimension(variant.depth)} = {format_dimension(variant.area)}² "
                f"[ratio {variant.aspect_ratio:.2f}]"
            )


def print_zones(zones: List[ProgramZone]):
    """Print zone areas and strategies"""
    totals = zone_totals(zones)
    print("\nPROGRAM ZONES:")
    for zone in zones:
        print(
            f"  {zone.id} {zone.name} ({zone.function_type}): "
            f"{zone.target_area_net:.0f} m² net + {zone.circulation_area:.0f} m² circulation "
            f"= {zone.gross_area:.0f} m² gross"
        )
        for variant in zone.variants:
            marker = "*" if variant.id == zone.active_variant_id else " "
            print(
                f"   {marker} {variant.strategy:<9} {variant.floor_count} floors, "
                f"{variant.target_footprint:.0f} m² per floor - {variant.notes}"
            )
    print(
        f"\nTotal: {totals['total_net_area']:.0f} m² net, "
        f"{totals['total_gross_area']:.0f} m² gross"
    )


def build_pipeline(args, parameters: Dict[str, Any]) -> PlanningPipeline:
    advisor: Optional[BaseAdvisor] = None
    if args.advisor != "none":
        try:
            advisor = create_advisor(args.advisor)
            print(f"Using advisor: {args.advisor}")
        except AdvisorError as e:
            print(f"Advisor unavailable ({e}), continuing with deterministic synthesis")
    return PlanningPipeline(advisor=advisor, parameters=parameters)


def visualize(rooms: List[RoomSpec], zones: List[ProgramZone], output_subfolder: str):
    """Save renders of room variants and zone strategies"""
    print("\nCreating visualizations...")
    try:
        from space_planning_ai.visualization.renderer import VariantRenderer

        renderer = VariantRenderer()
        written = renderer.save_renders(
            rooms, zones, os.path.join(output_subfolder, "renders")
        )
        print(f"  Saved {len(written['rooms'])} room and {len(written['zones'])} zone renders")
    except ImportError as e:
        print(f"Error creating visualizations: {e}")
        print("Make sure matplotlib is installed and properly configured.")


def save_outputs(
    args,
    output_subfolder: str,
    rooms: List[RoomSpec],
    zones: Optional[List[ProgramZone]] = None,
    result: Optional[PlanningResult] = None,
):
    """Save rooms, zones and the planning result"""
    print("\nSaving outputs...")
    os.makedirs(output_subfolder, exist_ok=True)

    rooms_file = os.path.join(output_subfolder, "rooms_with_variants.json")
    export_rooms_to_json(rooms, rooms_file, {"brief": args.brief})
    print(f"  Saved rooms to {rooms_file}")

    csv_file = os.path.join(output_subfolder, "variants.csv")
    export_variants_to_csv(rooms, csv_file)
    print(f"  Saved CSV to {csv_file}")

    if zones is not None:
        zones_file = os.path.join(output_subfolder, "zones.json")
        export_zones_to_json(zones, zones_file)
        print(f"  Saved zones to {zones_file}")

    if result is not None:
        result_file = os.path.join(output_subfolder, "plan.json")
        export_result_to_json(result, result_file)
        print(f"  Saved plan to {result_file}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    print("Space Planning AI - Variant and Zone Generator")
    print("==============================================")

    args = parse_arguments(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    print(f"Using brief: {args.brief}")
    print(f"Using parameters: {args.parameters}")

    try:
        rooms = load_brief(args.brief)
    except BriefFormatError as e:
        print(f"Error: {e}")
        return 1

    parameters = get_planning_parameters(args.parameters)
    if args.no_repair:
        parameters["repair_small_rooms"] = False

    if args.mode == "summary":
        print_brief_summary(rooms)
        return 0

    if args.mode == "validate":
        return 0 if validate_rooms(rooms, parameters) else 1

    pipeline = build_pipeline(args, parameters)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_subfolder = os.path.join(args.output, timestamp)
    start_time = time.time()

    if args.mode == "variants":
        print(f"\nGenerating variants for {len(rooms)} room types...")
        planned, _, repaired = asyncio.run(pipeline.synthesize_rooms(rooms, print_progress))
        print(f"Variants generated in {time.time() - start_time:.2f} seconds")
        if repaired:
            print(f"Repaired with relaxed rules: {', '.join(repaired)}")
        print_variants(planned)
        save_outputs(args, output_subfolder, planned)
        if args.visualize:
            visualize(planned, [], output_subfolder)

    elif args.mode == "zones":
        print(f"\nDeriving zones for {len(rooms)} room types...")
        zones, _ = asyncio.run(pipeline.zone_rooms(rooms))
        print(f"Zones derived in {time.time() - start_time:.2f} seconds")
        print_zones(zones)
        save_outputs(args, output_subfolder, rooms, zones)
        if args.visualize:
            visualize([], zones, output_subfolder)

    elif args.mode == "plan":
        print(f"\nPlanning {len(rooms)} room types...")
        result = pipeline.run(rooms, print_progress)
        print(f"Plan generated in {time.time() - start_time:.2f} seconds")
        print_variants(result.rooms)
        print_zones(result.zones)

        if result.feasibility_issues:
            print("\nFEASIBILITY ISSUES:")
            for issue in result.feasibility_issues:
                print(f"  {issue.room_name} ({issue.room_id}): {'; '.join(issue.errors)}")
        if result.rooms_without_variants:
            print(f"\nRooms without variants: {', '.join(result.rooms_without_variants)}")
        if result.overall_strategy:
            print(f"\nOverall strategy: {result.overall_strategy}")

        save_outputs(args, output_subfolder, result.rooms, result.zones, result)
        if args.visualize:
            visualize(result.rooms, result.zones, output_subfolder)

    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
